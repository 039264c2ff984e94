# storefront/data/backend.py
from sqlalchemy.orm import Session

from storefront.data.gateway import Gateway
from storefront.data.sql_gateway import SqlGateway
from storefront.services.rest_gateway import RestGateway
from storefront.utils.settings import DATA_BACKEND


def make_gateway(db: Session | None = None, access_token: str | None = None) -> Gateway:
    """Gateway for the configured backend, `db` is only used by the sql one."""
    if DATA_BACKEND == "sql":
        if db is None:
            raise RuntimeError("The sql backend needs a database session")
        return SqlGateway(db)
    return RestGateway(access_token=access_token)
