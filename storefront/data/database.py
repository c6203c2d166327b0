# storefront/data/database.py
from sqlalchemy import create_engine
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import declarative_base, sessionmaker

from storefront.domain.errors import ConfigurationError
from storefront.utils.settings import DATABASE_URL

# koszyk opiera sie na INSERT ... ON CONFLICT, tylko te dialekty go maja
UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def ensure_supported_dialect(bind):
    dialect = bind.dialect.name
    if dialect not in UPSERT_INSERTS:
        raise ConfigurationError(
            f"Unsupported database dialect {dialect!r}, "
            f"expected one of: {', '.join(sorted(UPSERT_INSERTS))}"
        )
    return bind


engine = ensure_supported_dialect(create_engine(DATABASE_URL, pool_pre_ping=True))
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None) -> None:
    # modele musza byc zaimportowane przed create_all
    import storefront.data.models  # noqa: F401

    bind = ensure_supported_dialect(bind or engine)
    Base.metadata.create_all(bind=bind)
