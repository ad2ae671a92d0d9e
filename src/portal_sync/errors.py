from __future__ import annotations


class SyncError(RuntimeError):
    """Error base de la sincronización con el portal."""


class AuthenticationFailure(SyncError):
    """El portal rechazó las credenciales. Se aborta antes de extraer nada."""


class UnknownAccountType(SyncError):
    """Tipo de cuenta no reconocido: la cuenta se omite, no aborta el run."""


class BalanceParseFailure(SyncError):
    """
    El balance de una cuenta conocida no se pudo leer.
    Nunca se guarda un NaN: mejor abortar que persistir un número falso.
    """


class MissingAccountMapping(SyncError):
    """Hay operaciones para una cuenta que no está entre las cuentas guardadas."""
