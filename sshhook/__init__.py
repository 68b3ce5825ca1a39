"""Authentication and configuration webhook for SSH gateways."""

__version__ = "0.1.0"
