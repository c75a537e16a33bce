# proxyshop/utils/params.py
from proxyshop.exceptions import ShopError


def int_param(data, name: str, required: bool = True, default=None):
    """Lê um inteiro do JSON/args; valor inválido vira 400."""
    value = data.get(name) if data else None
    if value is None or value == "":
        if required:
            raise ShopError(f"Campo obrigatório: {name}")
        return default
    if isinstance(value, bool):
        raise ShopError(f"Campo {name} inválido")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ShopError(f"Campo {name} inválido")


def bool_param(data, name: str):
    value = data.get(name) if data else None
    if not isinstance(value, bool):
        raise ShopError(f"Campo {name} deve ser true ou false")
    return value
