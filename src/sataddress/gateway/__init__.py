from sataddress.gateway.invoice import InvoiceGateway

__all__ = ["InvoiceGateway"]
