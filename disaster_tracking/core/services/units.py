"""
Units and measures reference data.
"""

from __future__ import annotations

from disaster_tracking.core.database.entities.units import Measure, Unit
from disaster_tracking.core.forms.fields import API_IMPORT_ID, FieldDef, FieldType, enum_options

from .resource import CrudResource

UNIT_TYPES = enum_options(
    ("number", "Number"),
    ("area", "Area"),
    ("volume", "Volume"),
    ("duration", "Duration"),
)

# value units used by losses and damages
UNITS_ENUM = enum_options(
    ("number_count", "Count"),
    ("area_m2", "Square Meters (m²)"),
    ("area_km2", "Square Kilometers (km²)"),
    ("area_ha", "Hectares"),
    ("area_mi2", "Square Miles (mi²)"),
    ("area_ac", "Acres"),
    ("area_ft2", "Square Feet (ft²)"),
    ("area_yd2", "Square Yards (yd²)"),
    ("volume_l", "Liters (L)"),
    ("volume_m3", "Cubic Meters (m³)"),
    ("volume_ft3", "Cubic Feet (ft³)"),
    ("volume_yd3", "Cubic Yards (yd³)"),
    ("volume_gal", "Gallons (gal)"),
    ("volume_bbl", "Barrels (bbl)"),
    ("duration_days", "Days"),
    ("duration_hours", "Hours"),
)

UNIT_FIELDS = [
    FieldDef(key="type", label="Type", type=FieldType.ENUM, required=True, enum_data=UNIT_TYPES),
    FieldDef(key="name", label="Name", type=FieldType.TEXT, required=True),
]

UNIT_API_FIELDS = [*UNIT_FIELDS, API_IMPORT_ID]

MEASURE_FIELDS = [
    FieldDef(key="name", label="Name", type=FieldType.TEXT, required=True),
    FieldDef(key="unit", label="Unit", type=FieldType.TEXT, required=True),
]

MEASURE_API_FIELDS = [*MEASURE_FIELDS, API_IMPORT_ID]

units_resource = CrudResource(
    name="unit",
    label="Unit",
    model=Unit,
    fields_def=UNIT_API_FIELDS,
    order_by=(Unit.name,),
)

measures_resource = CrudResource(
    name="measure",
    label="Measure",
    model=Measure,
    fields_def=MEASURE_API_FIELDS,
    order_by=(Measure.name,),
)
