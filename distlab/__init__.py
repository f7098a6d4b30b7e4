"""In-process distributed-systems components: balancing, MapReduce, payments and Byzantine generals."""

__version__ = "0.1.0"