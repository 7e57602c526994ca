"""Test fixtures: workbook builders."""
