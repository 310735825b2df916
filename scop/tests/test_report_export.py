#!/usr/bin/env python3
"""
Tests for anomaly export
"""
import pandas as pd

from scop.models.report import Anomaly, Severity
from scop.utils.report_export import ANOMALY_COLUMNS, anomalies_to_frame, write_anomaly_csv


def sample_anomalies():
    return [
        Anomaly.missing_raf("1abcA", Severity.DEFECT),
        Anomaly.length_drift("1xyzB", -14),
        Anomaly.sunid_mismatch(42, 1001, 0),
    ]


class TestReportExport:

    def test_frame_columns(self):
        df = anomalies_to_frame(sample_anomalies())

        assert list(df.columns) == ANOMALY_COLUMNS
        assert list(df["severity"]) == ["defect", "warning", "defect"]
        assert df.loc[1, "value"] == -14

    def test_empty(self):
        df = anomalies_to_frame([])
        assert df.empty
        assert list(df.columns) == ANOMALY_COLUMNS

    def test_write_csv(self, tmp_path):
        path = tmp_path / "out.csv"

        assert write_anomaly_csv(sample_anomalies(), str(path)) == 3

        df = pd.read_csv(path)
        assert list(df["kind"]) == ["missing_raf", "length_drift", "sunid_mismatch"]
        assert df.loc[2, "node_id"] == 42
