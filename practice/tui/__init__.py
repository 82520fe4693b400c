# SPDX-License-Identifier: MIT
"""Textual interface for Practice Builder."""
