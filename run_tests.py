import sys
import pytest

# Run pytest programmatically; pyproject.toml puts the project root on sys.path
exit_code = pytest.main(["tests/", "-v"])
sys.exit(exit_code)
