"""Step 2: Probabilistic models.

The body of a function decorated with `model` is read as a block of
``name: distribution(args...)`` bindings. Bindings may appear in any order:
they are sampled after the values they read.
"""

import minidsl as md


@md.model
def regression():
    for i in range(3):
        y[i]: normal(slope * i + intercept, noise)
    slope: normal(0, 1)
    intercept: normal(0, 1)
    noise: gamma(2, 1)


print(regression.plan.order)  # ('slope', 'intercept', 'noise', 'y[0]', 'y[1]', 'y[2]')
print(regression(md.RandomSampler(seed=42)))


# Loops whose bounds are not literals stay loops; their bounds become parameters
@md.model
def coins():
    p: beta(1, 1)
    for k in range(n):
        flip[k]: bernoulli(p)


print(coins.parameters)  # ('n',)
print(coins(md.RandomSampler(seed=0), n=5))

# The plan can also be rendered as plain Python
print(coins.source)
