from api.pastas.orm.pasta_model import PastaModel

__all__ = ["PastaModel"]
