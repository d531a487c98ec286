"""CSS styles for the TUI.

Hides layout and styling decisions from the application logic.
Uses Textual CSS features: nesting, pseudo-classes, variables.

Layout:
- Left column: chat history (streams the live reply)
- Right column: tool activity log above the (hidden by default) debug log
- Bottom row spanning both columns: status bar and input box
"""

APP_CSS = """
/* ============================================
   Main Screen Layout - 2x2 Grid
   ============================================ */
Screen {
    layout: grid;
    grid-size: 2 2;
    grid-columns: 3fr 2fr;
    grid-rows: 1fr auto;
    background: $background;
}

/* ============================================
   Chat History Panel
   ============================================ */
#chat-history {
    height: 100%;
    background: $panel;
    border: round $primary 60%;
    border-title-color: $primary;
    border-title-style: bold;
    border-title-align: left;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    scrollbar-gutter: stable;

    &:focus-within {
        border: round $primary;
    }
}

/* ============================================
   Right Panel: tool log + debug log
   ============================================ */
#right-panel {
    height: 100%;
    background: transparent;
    padding: 0;
}

#tool-log {
    height: 1fr;
    background: $panel;
    border: round $secondary 60%;
    border-title-color: $secondary;
    border-title-style: bold;
    border-title-align: left;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    scrollbar-gutter: stable;

    &:focus {
        border: round $secondary;
    }
}

#debug-panel {
    height: 1fr;
    min-height: 6;
    background: $panel;
    border: round $warning 60%;
    border-title-color: $warning;
    border-title-style: bold;
    border-title-align: left;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    overflow-x: auto;
    scrollbar-gutter: stable;
    margin-top: 1;
}

/* ============================================
   Bottom Bar - Status + Input
   ============================================ */
#bottom-bar {
    column-span: 2;
    height: auto;
    padding: 0 1;
    background: $panel;
    border-top: solid $border;
}

#status-bar {
    height: 1;
    padding: 0 1;
    margin-bottom: 1;
    background: $surface;
    color: $foreground;
}

#chat-input {
    border: round $primary 60%;
    background: $panel;

    &:focus {
        border: round $primary;
    }

    &:disabled {
        border: round $border;
        color: $text-muted;
    }
}

/* ============================================
   Chat Messages
   ============================================ */
.chat-message {
    width: 100%;
    height: auto;
    margin: 0 0 1 0;
    padding: 0 1;
    background: transparent;
}

.user-message {
    border-left: tall $success;
    background: $success 8%;

    & .message-header {
        color: $success;
        text-style: bold;
    }
}

.assistant-message {
    border-left: tall $primary;
    background: $primary 8%;

    & .message-header {
        color: $primary;
        text-style: bold;
    }
}

.error-message {
    border-left: tall $error;
    background: $error 10%;

    & .message-header {
        color: $error;
        text-style: bold;
    }
}

.message-header {
    height: auto;
}

.message-content {
    height: auto;
    color: $foreground;
}

#chat-history.-maximized {
    column-span: 2;
}

/* ============================================
   Chrome
   ============================================ */
Header {
    background: $panel;
    color: $foreground;
    height: 1;
}

HeaderTitle {
    color: $primary;
    text-style: bold;
}

Footer {
    background: $panel;
}

* {
    scrollbar-background: $panel;
    scrollbar-color: $surface-lighten-1;
    scrollbar-color-hover: $primary 50%;
    scrollbar-color-active: $primary;
    scrollbar-size: 1 1;
}
"""
