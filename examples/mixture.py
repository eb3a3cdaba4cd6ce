# Two-component mixture with a run-time number of observations.
# Written out of order: bindings are sorted by what they read.
# minidsl model examples/mixture.py --bound n=4 --sample
for k in range(n):
    if pick > 0:
        obs[k]: normal(high, scale)
    else:
        obs[k]: normal(low, scale)
pick: bernoulli(0.3)
high: normal(5, 1)
low: normal(-5, 1)
scale: gamma(2, 0.5)
