from .keystore import FileKeyStore, KeyStore
from .models import Identity, IdentitySelector
from .signer import LocalKeySigner, NodeAccountSigner, Signer, SignerError

__all__ = [
    "FileKeyStore",
    "Identity",
    "IdentitySelector",
    "KeyStore",
    "LocalKeySigner",
    "NodeAccountSigner",
    "Signer",
    "SignerError",
]
