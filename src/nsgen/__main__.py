"""Allow running the package with python -m nsgen (same as the nsgen console script)."""
from nsgen.main import main
import sys
sys.exit(main())
