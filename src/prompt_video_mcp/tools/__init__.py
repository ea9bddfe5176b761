"""FastMCP sub-servers exposing the generate pipeline as tools."""
