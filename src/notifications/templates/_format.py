"""Shared text fragments for order email templates."""


def money(value) -> str:
    return f"${float(value or 0):.2f}"


def item_lines(items: list[dict]) -> str:
    lines = []
    for item in items or []:
        quantity = int(item.get("quantity") or 1)
        unit_price = float(item.get("unit_price") or 0)
        suffix = " (digital download)" if item.get("is_digital") else ""
        lines.append(f"  - {item.get('name', 'Item')} x{quantity}  {money(unit_price * quantity)}{suffix}")
    return "\n".join(lines) if lines else "  (no items)"


def address_block(address: dict | None) -> str | None:
    if not address:
        return None
    locality = ", ".join(p for p in (address.get("city"), address.get("state")) if p)
    if address.get("postal_code"):
        locality = f"{locality} {address['postal_code']}".strip()
    parts = [
        address.get("name"),
        address.get("line1"),
        address.get("line2"),
        locality,
        address.get("country"),
    ]
    return "\n".join(f"  {p}" for p in parts if p)
