"""Weekly menu grouping for display."""

from datetime import datetime

from canteen.ordering.availability import day_of_week
from canteen.ordering.entities import MenuCategory, MenuItem

DAY_NAMES = [
    "Domingo",
    "Segunda-feira",
    "Terça-feira",
    "Quarta-feira",
    "Quinta-feira",
    "Sexta-feira",
    "Sábado",
]

MENU_DAYS = range(1, 7)


def highlighted_day(moment: datetime) -> int:
    """Day to highlight on the menu; Sunday shows Saturday."""
    day = day_of_week(moment)
    return 6 if day == 0 else day


def group_by_day(items: list[MenuItem]) -> dict[int, list[MenuItem]]:
    grouped: dict[int, list[MenuItem]] = {day: [] for day in MENU_DAYS}
    for item in items:
        if item.day_of_week in grouped:
            grouped[item.day_of_week].append(item)
    return grouped


def build_weekly_menu(
    menu: dict[MenuCategory, list[MenuItem]],
    current_day: int,
) -> list[dict]:
    """One entry per day, Monday to Saturday, with the three menu sections."""
    by_category = {category: group_by_day(menu.get(category, [])) for category in MenuCategory}
    return [
        {
            "day": day,
            "name": DAY_NAMES[day],
            "is_current": day == current_day,
            "main": [item.to_dict() for item in by_category[MenuCategory.MAIN][day]],
            "salad": [item.to_dict() for item in by_category[MenuCategory.SALAD][day]],
            "optional": [item.to_dict() for item in by_category[MenuCategory.OPTIONAL][day]],
        }
        for day in MENU_DAYS
    ]
