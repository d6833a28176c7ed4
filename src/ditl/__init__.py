"""Day in the Life: a local-first personal activity tracker."""

__version__ = "0.3.0"
