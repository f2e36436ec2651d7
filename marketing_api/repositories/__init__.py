from marketing_api.repositories.gateway import PersistenceGateway

__all__ = ["PersistenceGateway"]
