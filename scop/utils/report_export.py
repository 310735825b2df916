# scop/utils/report_export.py

import logging
from typing import Iterable

import pandas as pd

from scop.models.report import Anomaly

ANOMALY_COLUMNS = ['kind', 'severity', 'chain', 'sid', 'node_id', 'value', 'description', 'message']

logger = logging.getLogger("scop.utils.report_export")


def anomalies_to_frame(anomalies: Iterable[Anomaly]) -> pd.DataFrame:
    """One row per anomaly, in a fixed column order"""
    rows = [a.to_dict() for a in anomalies]
    return pd.DataFrame(rows, columns=ANOMALY_COLUMNS)


def write_anomaly_csv(anomalies: Iterable[Anomaly], path: str) -> int:
    """Write anomalies to a CSV file

    Returns:
        Number of rows written
    """
    df = anomalies_to_frame(anomalies)
    df.to_csv(path, index=False)
    logger.info(f"Wrote {len(df)} anomalies to {path}")
    return len(df)
