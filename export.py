"""
CSV export of tenant resources for the Auth0 Management Tool.

Flattens Management API records into DataFrames and writes a timestamped
snapshot per resource type, plus a copy under latest/.
"""

import json
import logging
import shutil
from datetime import datetime
from pathlib import Path

import pandas as pd

logger = logging.getLogger(__name__)

# Columns written for each resource type, in order
EXPORT_COLUMNS: dict[str, list[str]] = {
    'applications': ['client_id', 'name', 'app_type', 'description', 'callbacks',
                     'allowed_logout_urls', 'web_origins', 'grant_types', 'is_first_party'],
    'connections': ['id', 'name', 'strategy', 'display_name', 'enabled_clients', 'realms'],
    'actions': ['id', 'name', 'runtime', 'status', 'supported_triggers', 'all_changes_deployed'],
    'resource_servers': ['id', 'name', 'identifier', 'is_system', 'scopes', 'signing_alg', 'token_lifetime'],
    'roles': ['id', 'name', 'description'],
}


def _cell(value):
    """Serialize nested lists/dicts so they fit in a single CSV cell."""
    if isinstance(value, (list, dict)):
        return json.dumps(value, separators=(',', ':'), sort_keys=True)
    return value


def flatten_resources(records: list[dict], columns: list[str]) -> pd.DataFrame:
    """Build a DataFrame with exactly `columns`, missing fields left empty."""
    rows = [{col: _cell(record.get(col)) for col in columns} for record in records]
    return pd.DataFrame(rows, columns=columns)


def save_resource_csv(name: str, records: list[dict], output_dir: Path) -> Path:
    """Save one resource listing to a timestamped CSV in output_dir.

    The file is also copied to output_dir/latest/{name}_latest.csv.

    Returns the path to the timestamped file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    latest_dir = output_dir / 'latest'
    latest_dir.mkdir(parents=True, exist_ok=True)

    columns = EXPORT_COLUMNS.get(name)
    if columns is None:
        columns = sorted({key for record in records for key in record})
    df = flatten_resources(records, columns)

    filename = output_dir / f"{name}_{datetime.now().strftime('%Y-%m-%d_%H-%M-%S')}.csv"
    df.to_csv(filename, index=False)
    shutil.copy(filename, latest_dir / f"{name}_latest.csv")

    logger.info(f"{len(df)} {name} saved to {filename}")
    return filename
