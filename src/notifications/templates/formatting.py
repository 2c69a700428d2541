def rupees(amount) -> str:
    try:
        return f"₹{float(amount):,.2f}"
    except (TypeError, ValueError):
        return "₹0.00"


def greeting(context: dict) -> str:
    name = context.get("customer_name")
    return f"Hi {name}," if name else "Hi,"
