def first_error_message(errors):
    """
    Flatten DRF serializer errors to "<field>: <message>" for the first failure.

    Example:
        {"name": ["Ensure this field has at least 2 characters."]}
        -> "name: Ensure this field has at least 2 characters."
    """
    for field, messages in errors.items():
        if isinstance(messages, dict):
            return first_error_message(messages)
        message = messages[0] if isinstance(messages, (list, tuple)) and messages else messages
        if field == "non_field_errors":
            return str(message)
        return f"{field}: {message}"
    return "Invalid input"
