"""sataddress — federated Lightning Address (LNURL-pay) server."""

__version__ = "0.1.0"
