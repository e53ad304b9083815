"""Color scheme and constants for rulelist CLI."""

# Color scheme
COLORS = {
    "primary": "#10b981",      # Emerald green - main brand color
    "dim": "#6b7280",          # Gray - secondary text
    "final": "#fbbf24",        # Amber - FINAL rule row
    "disabled": "#9ca3af",     # Light gray - disabled rule row
    "error": "red",
}

ENABLED_MARK = "✓"
DISABLED_MARK = "✗"

# Maximum cell length for display
MAX_VALUE_LENGTH = 40
