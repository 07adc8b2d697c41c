# Foundational pieces the rest of the package builds on:
# - config.py: module configuration (paths, executables, limits) and logging setup
