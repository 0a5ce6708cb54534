"""
Built-in survey datasets (literal rows -> immutable records)
===========================================================

The engine works on two fixed tables collected in Arequipa:

- 18 geographic sites (erosion/sediment raster statistics), ids GEOG-001..018
- 16 household surveys, ids SOC-001..016

Rows are kept as plain tuples in column order and converted once into frozen
records. Conversion helpers (_to_int/_to_float/_to_str) tolerate blanks so a
malformed cell becomes 0 instead of breaking startup.
"""

from __future__ import annotations
from typing import Any, List, Sequence, Tuple
import math

from .models import GeographicRecord, SocioeconomicRecord


def _to_float(x: Any) -> float:
    if x is None:
        return 0.0
    try:
        v = float(x)
    except (TypeError, ValueError):
        return 0.0
    return v if math.isfinite(v) else 0.0


def _to_int(x: Any) -> int:
    return int(_to_float(x))


def _to_str(x: Any) -> str:
    if x is None:
        return ""
    return str(x)


def make_id(prefix: str, idx: int) -> str:
    """GEOG-001 style identifiers."""
    return f"{prefix}-{idx:03d}"


# lat, lng, zone, department,
# suma_erosion, media_erosion, desviacion_erosion, suma_sed, media_sed, desviacion_sed
GEOGRAPHIC_ROWS: Tuple[tuple, ...] = (
    (-16.394224, -71.469349, "Asociación Los Olivos", "Arequipa",
     -47.295373, -0.00120237378924621, 0.0157621026301429,
     56.1839459999999, 0.00142834488369136, 0.0315842240544365),
    (-16.393202, -71.468926, "Asociación Los Olivos", "Arequipa",
     -50.244198, -0.00123081176816422, 0.0158102372114366,
     54.406455, 0.001332772892068, 0.0300769207685796),
    (-16.39308, -71.479171, "Asociación Héroes del Cenepa", "Arequipa",
     -33.418393, -0.00172704873385012, 0.0203642419147883,
     29.408354, 0.00151981157622739, 0.0345942068914171),
    (-16.394906, -71.484159, "Asociación Héroes del Cenepa", "Arequipa",
     -8.88996, -0.00175068137061835, 0.0189243891005892,
     2.359736, 0.000464697912564001, 0.0107159362387537),
    (-16.392518, -71.483483, "Asociación Héroes del Cenepa", "Arequipa",
     -9.934339, -0.00310739411948701, 0.027990019684418,
     5.467676, 0.00171025211135439, 0.0366682420999237),
    (-16.396844, -71.483827, "Asociación Héroes del Cenepa", "Arequipa",
     -4.714232, -0.00176298878085265, 0.0187262660983751,
     1.95406299999999, 0.000730764023934181, 0.014291893686451),
    (-16.397229, -71.48313, "Asociación Héroes del Cenepa", "Arequipa",
     -5.545974, -0.001739095014111, 0.0201680549883688,
     5.545973, 0.00173909470053308, 0.0302249792304995),
    (-16.404107, -71.478406, "Asociación San Gerónimo", "Arequipa",
     -2.702429, -0.000711540021063717, 0.0084333773022747,
     3.451062, 0.000908652448657188, 0.0160679558559837),
    (-16.403934, -71.478124, "Asociación Miguel Grau", "Arequipa",
     -2.870302, -0.000688156796931191, 0.00817167553534923,
     3.977812, 0.000953683049628386, 0.0166577805217426),
    (-16.403258, -71.47743, "Asociación Villa Del Misti", "Arequipa",
     -7.73971799999999, -0.00141727119575169, 0.0160864324226057,
     9.396763, 0.00172070371726789, 0.0323503169790241),
    (-16.403235, -71.479252, "Asociación Miguel Grau", "Arequipa",
     -3.551973, -0.000910295489492568, 0.00945386873220252,
     3.977812, 0.00101942901076371, 0.0172205930283661),
    (-16.405362, -71.47793, "Asociación Miguel Grau", "Arequipa",
     -1.517023, -0.000515293138586956, 0.00786243292554358,
     2.078371, 0.000705968410326087, 0.0140687535528962),
    (-16.406663, -71.475701, "Asociación Miguel Grau", "Arequipa",
     -1.475149, -0.00053525, 0.00809202204062114,
     1.497645, 0.000543412554426705, 0.0125687747544284),
    (-16.404435, -71.478442, "Asociación Miguel Grau", "Arequipa",
     -2.352365, -0.000679481513575967, 0.00843473200441026,
     2.677513, 0.000773400635470826, 0.0144833912554184),
    (-16.396312, -71.469612, "Asociación Los Olivos", "Arequipa",
     -25.294173, -0.00127317526551567, 0.0160303226521524,
     26.343314, 0.00132598349020989, 0.0302083106041892),
    (-16.395225, -71.468467, "Asociación Los Olivos", "Arequipa",
     -24.9028149999999, -0.00121134424554917, 0.0156652544768983,
     26.916436, 0.00130929253818464, 0.0301011051050529),
    (-16.39425, -71.470053, "Asociación Los Olivos", "Arequipa",
     -29.143923, -0.00129522790098217, 0.0166439665742345,
     33.348058, 0.00148207004133149, 0.0325813883024292),
    (-16.394433, -71.469763, "Asociación Los Olivos", "Arequipa",
     -26.755498, -0.00120541980537033, 0.0157759006436174,
     31.574869, 0.00142254771129933, 0.0320266778564364),
)

# lat, lng, zone, department, P2 gender, P3 age, P4 household, P5 elders 65+,
# P6 children <10, P8 insured, P9 chronic, P10 higher edu, P11 illiterate,
# P13 wall, P15 dummy 1, P15 dummy 2, income, P19 formal, P19 informal, P38 loss
SOCIOECONOMIC_ROWS: Tuple[tuple, ...] = (
    (-16.394224, -71.469349, "Asociación Los Olivos", "Arequipa", 0, 0, 3, 0, 1, 1, 0, 0, 0, 0, 0, 1, 1500, 0, 1, 200),
    (-16.393202, -71.468926, "Asociación Los Olivos", "Arequipa", 1, 0, 4, 0, 2, 2, 0, 1, 0, 0, 0, 1, 2000, 0, 1, 200),
    (-16.39308, -71.479171, "Asociación Héroes del Cenepa", "Arequipa", 0, 1, 2, 1, 0, 2, 2, 0, 0, 0, 1, 0, 1200, 0, 1, 200),
    (-16.394906, -71.484159, "Asociación Héroes del Cenepa", "Arequipa", 0, 1, 6, 0, 1, 6, 0, 0, 0, 0, 1, 0, 2000, 0, 2, 200),
    (-16.392518, -71.483483, "Asociación Héroes del Cenepa", "Arequipa", 1, 0, 4, 0, 1, 1, 0, 0, 1, 0, 1, 0, 500, 0, 1, 200),
    (-16.396844, -71.483827, "Asociación Héroes del Cenepa", "Arequipa", 0, 0, 4, 0, 2, 0, 0, 0, 0, 0, 0, 1, 1500, 0, 1, 200),
    (-16.397229, -71.48313, "Asociación Héroes del Cenepa", "Arequipa", 0, 1, 2, 1, 0, 1, 1, 0, 0, 1, 0, 1, 900, 0, 1, 200),
    (-16.404107, -71.478406, "Asociación San Gerónimo", "Arequipa", 0, 0, 5, 1, 2, 0, 0, 0, 0, 0, 1, 0, 2800, 1, 1, 0),
    (-16.403934, -71.478124, "Asociación Miguel Grau", "Arequipa", 1, 0, 5, 0, 2, 4, 0, 0, 0, 0, 0, 0, 3000, 1, 1, 300),
    (-16.403258, -71.47743, "Asociación Villa Del Misti", "Arequipa", 0, 1, 2, 0, 0, 0, 0, 0, 0, 1, 1, 0, 900, 0, 2, 300),
    (-16.403235, -71.479252, "Asociación Miguel Grau", "Arequipa", 0, 0, 6, 1, 1, 6, 2, 1, 0, 0, 0, 0, 1500, 1, 2, 600),
    (-16.405362, -71.47793, "Asociación Miguel Grau", "Arequipa", 0, 1, 9, 1, 6, 0, 0, 0, 3, 0, 1, 0, 3000, 0, 3, 300),
    (-16.406663, -71.475701, "Asociación Miguel Grau", "Arequipa", 0, 0, 5, 1, 0, 0, 0, 1, 0, 0, 0, 0, 900, 1, 1, 600),
    (-16.404435, -71.478442, "Asociación Miguel Grau", "Arequipa", 0, 0, 3, 0, 1, 1, 0, 1, 1, 0, 0, 0, 4500, 0, 2, 600),
    (-16.396312, -71.469612, "Asociación Los Olivos", "Arequipa", 0, 0, 6, 1, 3, 1, 1, 1, 1, 0, 0, 1, 1050, 0, 2, 200),
    (-16.395225, -71.468467, "Asociación Los Olivos", "Arequipa", 0, 1, 2, 2, 0, 2, 2, 0, 0, 0, 0, 1, 900, 0, 1, 200),
)


def geographic_record(idx: int, row: Sequence[Any]) -> GeographicRecord:
    """Convert one positional geographic row into a record (idx is 1-based)."""
    lat, lng, zone, dept, e_sum, e_mean, e_std, s_sum, s_mean, s_std = row
    return GeographicRecord(
        id=make_id("GEOG", idx),
        lat=_to_float(lat),
        lng=_to_float(lng),
        zone=_to_str(zone),
        department=_to_str(dept),
        erosion_sum=_to_float(e_sum),
        erosion_mean=_to_float(e_mean),
        erosion_std=_to_float(e_std),
        sediment_sum=_to_float(s_sum),
        sediment_mean=_to_float(s_mean),
        sediment_std=_to_float(s_std),
    )


def socioeconomic_record(idx: int, row: Sequence[Any]) -> SocioeconomicRecord:
    """Convert one positional survey row into a record (idx is 1-based)."""
    (lat, lng, zone, dept, gender, age, size, elders, children, insured, chronic,
     higher_edu, illiterate, wall, dummy1, dummy2, income, formal, informal, loss) = row
    return SocioeconomicRecord(
        id=make_id("SOC", idx),
        lat=_to_float(lat),
        lng=_to_float(lng),
        zone=_to_str(zone),
        department=_to_str(dept),
        gender_code=_to_int(gender),
        age_code=_to_int(age),
        household_size=_to_int(size),
        elders_65=_to_int(elders),
        children_under_10=_to_int(children),
        health_insurance_count=_to_int(insured),
        chronic_condition_count=_to_int(chronic),
        higher_education_count=_to_int(higher_edu),
        illiterate_count=_to_int(illiterate),
        wall_material_code=_to_int(wall),
        services_dummy_1=_to_int(dummy1),
        services_dummy_2=_to_int(dummy2),
        monthly_income=_to_float(income),
        formal_jobs=_to_int(formal),
        informal_jobs=_to_int(informal),
        estimated_loss_housing=_to_float(loss),
    )


def load_geographic() -> List[GeographicRecord]:
    return [geographic_record(i, row) for i, row in enumerate(GEOGRAPHIC_ROWS, start=1)]


def load_socioeconomic() -> List[SocioeconomicRecord]:
    return [socioeconomic_record(i, row) for i, row in enumerate(SOCIOECONOMIC_ROWS, start=1)]
