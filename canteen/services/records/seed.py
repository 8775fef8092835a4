"""
Sample menu used to populate an empty record store.

Ids are derived from item names so they stay stable across restarts.
"""

import uuid

from canteen.models import ItemType

_NAMESPACE = uuid.UUID("0b7f5c1e-4d0a-4a57-9a43-6f1d3c2b8e90")


def _item(
    name: str,
    price: float,
    item_type: ItemType,
    description: str,
    is_special_offer: bool = False,
    discount_percentage: float = 0.0,
    is_available: bool = True,
) -> dict:
    return {
        "id": str(uuid.uuid5(_NAMESPACE, name)),
        "name": name,
        "description": description,
        "price": price,
        "image_url": None,
        "is_available": is_available,
        "type": item_type,
        "is_special_offer": is_special_offer,
        "discount_percentage": discount_percentage,
    }


MENU_SEED = [
    # Vegetarian
    _item("Paneer Butter Masala", 180.0, ItemType.VEG, "Cottage cheese in a rich tomato gravy"),
    _item("Veg Biryani", 150.0, ItemType.VEG, "Basmati rice layered with spiced vegetables"),
    _item("Masala Dosa", 90.0, ItemType.VEG, "Crisp rice crepe with potato filling",
          is_special_offer=True, discount_percentage=10),
    _item("Chole Bhature", 110.0, ItemType.VEG, "Spiced chickpeas with fried bread"),
    _item("Veg Thali", 200.0, ItemType.VEG, "Seasonal thali", is_available=False),
    # Egg
    _item("Egg Curry", 120.0, ItemType.EGG, "Boiled eggs in onion-tomato masala"),
    _item("Egg Fried Rice", 130.0, ItemType.EGG, "Wok-tossed rice with scrambled egg",
          is_special_offer=True, discount_percentage=15),
    _item("Masala Omelette", 70.0, ItemType.EGG, "Three-egg omelette with chillies"),
    # Non-vegetarian
    _item("Chicken Biryani", 220.0, ItemType.NON_VEG, "Dum-cooked chicken with basmati rice",
          is_special_offer=True, discount_percentage=20),
    _item("Butter Chicken", 240.0, ItemType.NON_VEG, "Tandoori chicken in a creamy gravy"),
    _item("Fish Fry", 200.0, ItemType.NON_VEG, "Semolina-crusted fried fish"),
    # Combos
    _item("Student Combo", 160.0, ItemType.COMBO, "Veg biryani, raita and a soft drink",
          discount_percentage=5),
    _item("Family Feast", 650.0, ItemType.COMBO, "Two biryanis, butter chicken, naan and dessert",
          is_special_offer=True, discount_percentage=25),
    _item("Breakfast Combo", 120.0, ItemType.COMBO, "Masala dosa, vada and filter coffee"),
]
