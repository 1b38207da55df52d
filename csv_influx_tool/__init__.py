"""Load delimited text files into InfluxDB as time-series points."""

__version__ = "0.1.0"
