from typing import Any, Optional

import pandas as pd

from .exceptions import InvalidParameterError
from .utils.logger import get_logger


class DataLoader:
    """Loads the patient table from a CSV file or a warehouse query.

    The warehouse connection is supplied by the caller (any DB-API or
    SQLAlchemy connection accepted by ``pandas.read_sql``).
    """

    def __init__(
        self,
        path: Optional[str] = None,
        sample_size: Optional[int] = None,
        query: Optional[str] = None,
        connection: Any = None,
        random_state: int = 42,
    ):
        if (path is None) == (query is None):
            raise InvalidParameterError(
                "Provide exactly one of 'path' or 'query'", stage="load"
            )
        if query is not None and connection is None:
            raise InvalidParameterError(
                "A connection is required to run a query", stage="load"
            )
        self.path = path
        self.sample_size = sample_size
        self.query = query
        self.connection = connection
        self.random_state = random_state
        self.logger = get_logger(self.__class__.__name__)

    def load(self) -> pd.DataFrame:
        if self.path is not None:
            df = pd.read_csv(self.path)
            source = self.path
        else:
            df = pd.read_sql(self.query, self.connection)
            source = "warehouse query"
        if self.sample_size:
            df = df.sample(self.sample_size, random_state=self.random_state)
        self.logger.info(f"Loaded {len(df):,} rows from {source}")
        return df
