# A directed triangle with a tail.
# minidsl graph examples/triangle.py
1 >> 2
2 >> 3
3 >> 1
3 >> 10
