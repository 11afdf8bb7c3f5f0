from sqlmodel import SQLModel
from courtroom import config, models  # noqa: F401  (registers the tables)
from courtroom.main import engine


def init_db():
    print(f"Creating tables in {config.DB_URL} ...")
    SQLModel.metadata.create_all(engine)
    print("Done.")


if __name__ == "__main__":
    init_db()
