"""podstats: expose Kubernetes pod resource specs and usage as scrapeable series."""

__version__ = "0.1.0"
