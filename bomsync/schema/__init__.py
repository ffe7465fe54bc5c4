"""Canonical field names and default configuration tables for BOM import."""

from typing import Dict, List, Tuple

# Canonical component fields
DESIGNATOR_FIELD = "Designator"
QUANTITY_FIELD = "Quantity"
MPN_FIELD = "Mfr. Part #"
LPN_FIELD = "Local_Part_Number"
PROJECT_FIELD = "ProjectName"
ID_FIELD = "id"
UPDATED_AT_FIELD = "updatedAt"

# Default designator column and fallbacks, checked in order
DEFAULT_DESIGNATOR_COLUMN = "Designator"
DEFAULT_ALTERNATE_DESIGNATOR_COLUMNS: List[str] = ["Reference", "RefDes", "Ref"]

# Alias columns that mirror the designator when a row is split per designator
DESIGNATOR_ALIAS_FIELDS: List[str] = ["Reference", "RefDes", "Ref"]

# Header names recognized as a quantity column (matched case-insensitively)
QUANTITY_COLUMN_NAMES: List[str] = ["qty", "quantity", "qnt", "count", "amount"]

# Field names that may hold the manufacturer part number, first present wins
MPN_FIELDS: List[str] = [
    "Mfr. Part #",
    "MPN",
    "Manufacturer Part Number",
    "Part Number",
    "PartNumber",
    "Part#",
]

# Source header -> canonical field. Order matters: first match wins.
DEFAULT_FIELD_MAPPINGS: List[Tuple[str, str]] = [
    ("Part Number", "Mfr. Part #"),
    ("MPN", "Mfr. Part #"),
    ("Part#", "Mfr. Part #"),
    ("Reference", "Designator"),
    ("Ref", "Designator"),
    ("RefDes", "Designator"),
    ("Qty", "Quantity"),
    ("Description", "Description"),
    ("Desc", "Description"),
    ("Value", "Value"),
    ("Package", "Footprint"),
    ("Manufacturer", "Manufacturer"),
    ("Mfr", "Manufacturer"),
]

# Fields pushed to schematic symbols, in order
DEFAULT_KICAD_SYNC_PARAMS: List[str] = ["Datasheet", "Mfr. Part #"]

# Designator prefix -> human label (informational)
DEFAULT_DESIGNATOR_MEANINGS: Dict[str, str] = {
    "R": "Resistor",
    "C": "Capacitor",
    "L": "Inductor",
    "D": "Diode",
    "Q": "Transistor",
    "U": "Integrated Circuit",
    "IC": "Integrated Circuit",
    "J": "Connector",
    "P": "Connector",
    "SW": "Switch",
    "F": "Fuse",
    "T": "Transformer",
    "K": "Relay",
    "X": "Crystal/Oscillator",
    "Y": "Crystal",
    "BT": "Battery",
    "TP": "Test Point",
    "FID": "Fiducial",
    "FB": "Ferrite Bead",
    "RN": "Resistor Network",
}

# LPN layout: PREFIX-SSSSS-HHHHHH
DEFAULT_LPN_PREFIX = "KL"
LPN_SEQUENCE_DIGITS = 5
LPN_HASH_LENGTH = 6
MAX_LPN_SEQUENCE = 99999
DEFAULT_LPN_COUNTER_KEY = "counters/lpn"
