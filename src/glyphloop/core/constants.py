"""Centralized constants for the application."""

# ANSI control sequences
ANSI_RESET = "\x1b[0m"
ANSI_HIDE_CURSOR = "\x1b[?25l"
ANSI_SHOW_CURSOR = "\x1b[?25h"
ANSI_ENTER_ALT_SCREEN = "\x1b[?1049h"
ANSI_EXIT_ALT_SCREEN = "\x1b[?1049l"
ANSI_CURSOR_HOME = "\x1b[H"
ANSI_FG_TRUECOLOR = "\x1b[38;2;{r};{g};{b}m"

# Transparent pixels reset color so a previous cell's color never bleeds into the gap
TRANSPARENT_CELL = ANSI_RESET + " "

# Rec. 709 luma weights
LUMA_R = 0.2126
LUMA_G = 0.7152
LUMA_B = 0.0722
