from sataddress.keysend.relay import KeysendRelayClient, ScrubLink

__all__ = ["KeysendRelayClient", "ScrubLink"]
