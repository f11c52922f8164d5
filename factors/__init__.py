from .base import Factor
from .totp import TotpFactor
from .email import EmailFactor
from .iprange import IpRangeFactor
from .nosetup import NoSetupFactor

FACTOR_CLASSES = {
    "totp": TotpFactor,
    "email": EmailFactor,
    "iprange": IpRangeFactor,
    "nosetup": NoSetupFactor,
}


def get_factor(name: str, **kwargs) -> Factor:
    cls = FACTOR_CLASSES.get(name)
    if cls is None:
        raise ValueError(f"Unknown factor: {name}")
    return cls(name, **kwargs)


def get_factors(**kwargs) -> list:
    return [cls(name, **kwargs) for name, cls in FACTOR_CLASSES.items()]


def get_enabled_factors(**kwargs) -> list:
    return [f for f in get_factors(**kwargs) if f.is_enabled()]
