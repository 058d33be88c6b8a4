"""Core constants used across Ward modules.

This module centralizes warehouse layout names and reporting constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".ward")
WAREHOUSES_DIR_NAME = "warehouses"
VERSIONS_DIR_NAME = "versions"
CATALOG_FILE_NAME = "catalog.json"
MANIFEST_FILE_NAME = "manifest.json"
REJECTS_FILE_NAME = "rejects.jsonl"
TABLE_FILE_SUFFIX = ".parquet"
REPORTS_MANIFEST_FILE_NAME = "reports_manifest.json"
SUPPORTED_INPUT_EXTENSIONS = (".csv", ".jsonl")
RAW_COLUMNS = (
    "name",
    "age",
    "gender",
    "blood_type",
    "medical_condition",
    "date_of_admission",
    "doctor",
    "hospital",
    "insurance_provider",
    "billing_amount",
    "room_number",
    "admission_type",
    "discharge_date",
    "medication",
    "test_results",
)
FACT_TABLE_NAME = "fact_admissions"
ADMISSION_TYPES = ("Emergency", "Elective", "Urgent")
TEST_RESULTS = ("Normal", "Abnormal", "Inconclusive")
AGE_GROUPS = (
    ("Pediatric (0-17)", 0, 17),
    ("Young Adult (18-34)", 18, 34),
    ("Middle Age (35-49)", 35, 49),
    ("Older Adult (50-65)", 50, 65),
    ("Senior (66+)", 66, None),
)
VISITOR_TYPES = ("One-time", "2 visits", "3+ visits")
HIGH_OUTLIER_FLAG = "High Outlier"
LOW_OUTLIER_FLAG = "Low Outlier"
NORMAL_FLAG = "Normal"
DEFAULT_OUTLIER_THRESHOLD = 2.0
DEFAULT_STDDEV_MODE = "sample"
SUPPORTED_STDDEV_MODES = ("sample", "population")
DEFAULT_EXPORT_FORMAT = "csv"
SUPPORTED_EXPORT_FORMATS = ("csv", "jsonl")
CURRENCY_PLACES = 2
PERCENT_PLACES = 2
LENGTH_OF_STAY_PLACES = 1
