# magpie/__init__.py
