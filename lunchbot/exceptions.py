"""Error taxonomy for the daily menu selection."""


class MenuSelectionError(Exception):
    """Base class for errors reported back to the caller of a selection operation."""


class AlreadyConfirmed(MenuSelectionError):
    """The date already has a confirmed menu."""

    def __init__(self, record):
        self.record = record
        super().__init__(
            f"Menu for {record.date} is already confirmed ({record.selected_menu})"
        )


class NoPreview(MenuSelectionError):
    """Confirm was attempted before any menu was previewed for the date."""

    def __init__(self, date_key: str):
        self.date = date_key
        super().__init__(f"No previewed menu for {date_key}")


class SupplierFailure(MenuSelectionError):
    """An injected menu or weather supplier raised or returned nothing."""


class PersistenceFailure(Exception):
    """The state store could not write its file. In-memory state stays authoritative."""
