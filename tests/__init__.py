"""notebook-export test suite.

- unit/: one module per library module (state store, runner, config, CLI, ...)
- integration/: full incremental export lifecycles against a file-writing service
- helpers.py: recording export service used across both
"""
