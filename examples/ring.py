# An undirected ring; ids are arbitrary and get relabelled to 0..n-1.
# minidsl graph examples/ring.py --no-relabel
7 - 3
3 - 12
12 - 5
5 - 7
