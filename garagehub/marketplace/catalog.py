"""Fixed marketplace browse lists."""

BRANDS = [
    "Perodua",
    "Proton",
    "Toyota",
    "Honda",
    "Nissan",
    "Mitsubishi",
    "Mazda",
    "BMW",
    "Mercedes",
    "VW",
    "Hyundai",
    "Kia",
]

CATEGORIES = [
    "Engine",
    "Gearbox",
    "Body",
    "Suspension",
    "Electrical",
    "Cooling",
    "Brakes",
    "Lubricant",
    "Battery",
    "Tyre",
    "Tools",
    "Accessories",
    "Halfcut",
]


def normalize_supplier_type(value: str) -> str:
    """Map free-form filter input (oem, HALFCUT, ...) to the stored value."""
    return "OEM" if value.strip().upper() == "OEM" else "Halfcut"
