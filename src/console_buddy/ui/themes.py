"""Theme definitions for the TUI.

This module hides the design decisions about:
- Color palettes and visual appearance
- Theme variables (borders, scrollbars, etc.)

To add a new theme, define it here and register in the app.
"""

from textual.theme import Theme

# Violet accent on a near-black background
CONSOLE_BUDDY = Theme(
    name="console-buddy",
    primary="#7D56F4",      # Violet - main accent, chat panel
    secondary="#04B575",    # Green - tool activity
    accent="#F25D94",       # Pink - highlights
    foreground="#FAFAFA",
    background="#101014",
    success="#04B575",
    warning="#FFB86C",
    error="#FF5F87",
    surface="#1A1A22",
    panel="#14141A",
    dark=True,
    variables={
        "block-cursor-foreground": "#101014",
        "block-cursor-background": "#7D56F4",
        "block-cursor-text-style": "bold",
        "input-cursor-background": "#FAFAFA",
        "input-cursor-foreground": "#101014",
        "input-selection-background": "#7D56F4 30%",
        "border": "#3C3C4A",
        "border-blurred": "#2A2A34",
        "scrollbar": "#2A2A34",
        "scrollbar-hover": "#3C3C4A",
        "scrollbar-active": "#7D56F4",
        "scrollbar-background": "#14141A",
        "footer-key-foreground": "#F25D94",
        "text-muted": "#767676",
    },
)
