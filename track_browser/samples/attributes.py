from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

import pandas as pd

from track_browser.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

SAMPLE_ATTRIBUTE = "SAMPLE_ATTRIBUTE"


@dataclass(frozen=True)
class AttributeIdentifier:
    """
    Identifies an abstract sample attribute.

    - type: which attribute info source knows the attribute, e.g. "SAMPLE_ATTRIBUTE"
    - specifier: source-specific key, e.g. the metadata column name
    """
    type: str
    specifier: Any = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> AttributeIdentifier:
        if "type" not in raw:
            raise ConfigError("An attribute identifier needs a 'type'", config=dict(raw))
        return cls(type=raw["type"], specifier=raw.get("specifier"))

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "specifier": self.specifier}

    @property
    def display_name(self) -> str:
        return str(self.specifier) if self.specifier is not None else self.type


@dataclass(frozen=True)
class AttributeInfo:
    """
    - name: human-readable attribute name
    - accessor: maps a sample id to the attribute value
    - type: e.g. "quantitative", "nominal" or "ordinal"
    - scale: scale description; nominal attributes carry {"domain": [...]}
    """
    name: str
    accessor: Callable[[str], Any]
    type: str
    scale: Any = None


AttributeInfoSource = Callable[[AttributeIdentifier], Optional[AttributeInfo]]


class SampleMetadata:
    """
    Sample attributes backed by a pandas DataFrame, one row per sample.

    The index (or the `sample_column`, if given) holds the sample ids; every
    other column is an attribute. Numeric columns are quantitative, all other
    columns nominal.
    """

    def __init__(self, df: pd.DataFrame, sample_column: Optional[str] = None):
        if sample_column is not None:
            if sample_column not in df.columns:
                raise ConfigError(
                    f"Sample column '{sample_column}' not found in metadata. "
                    f"Available columns: {list(df.columns)}"
                )
            df = df.set_index(sample_column)

        df.index = df.index.astype(str)
        if not df.index.is_unique:
            logger.warning("Sample ids in metadata are not unique; keeping the first occurrence")
            df = df[~df.index.duplicated(keep="first")]

        self.df = df

    @classmethod
    def from_file(cls, path: str | Path, sample_column: Optional[str] = None) -> SampleMetadata:
        """
        Load a tab- or comma-separated metadata table. The first column holds
        the sample ids unless sample_column says otherwise.
        """
        path = Path(path)
        if not path.is_file():
            raise ConfigError(f"Sample metadata file not found at {path}.")

        sep = "," if path.suffix.lower() == ".csv" else "\t"
        df = pd.read_csv(path, sep=sep)
        if sample_column is None:
            sample_column = df.columns[0]
        logger.info("Loaded metadata for %d samples from %s", len(df), path)
        return cls(df, sample_column=sample_column)

    @property
    def sample_ids(self) -> List[str]:
        return list(self.df.index)

    @property
    def attribute_names(self) -> List[str]:
        return [str(c) for c in self.df.columns]

    def attribute_info_source(self, attribute: AttributeIdentifier) -> Optional[AttributeInfo]:
        """
        Resolve an attribute of type SAMPLE_ATTRIBUTE; the specifier is the column name.
        Returns None for unknown columns.
        """
        column = attribute.specifier
        if column not in self.df.columns:
            return None

        series = self.df[column]
        values: Dict[str, Any] = {
            sample: (None if pd.isna(value) else _to_python(value))
            for sample, value in series.items()
        }

        def accessor(sample_id: str) -> Any:
            return values.get(sample_id)

        if pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series):
            return AttributeInfo(name=str(column), accessor=accessor, type="quantitative")

        domain = [_to_python(v) for v in pd.unique(series.dropna())]
        return AttributeInfo(
            name=str(column), accessor=accessor, type="nominal", scale={"domain": domain}
        )


def _to_python(value: Any) -> Any:
    # numpy scalars -> plain python values
    return value.item() if hasattr(value, "item") else value
