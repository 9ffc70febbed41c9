from databases import Database

from prizepool.config import config

database = Database(str(config.pg_dsn))
