"""Deploy container services to Tutum from a declarative tutum.yaml."""

__version__ = "0.1.0"
