"""
Test suite for Mockup Composer.

This package contains unit tests, integration tests, and test utilities
for the design-plate rasterizer and the guide derivation stage.
"""

import sys
from pathlib import Path

# Add the project root to the Python path for imports
project_dir = Path(__file__).parent.parent
if str(project_dir) not in sys.path:
    sys.path.insert(0, str(project_dir))
