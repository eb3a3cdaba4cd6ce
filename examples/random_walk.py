# Gaussian random walk with a fixed length.
# minidsl model examples/random_walk.py --sample --seed 0
drift: normal(0, 0.1)
z[0]: normal(0, 1)
for i in range(1, 5):
    z[i]: normal(z[i - 1] + drift, 1)
