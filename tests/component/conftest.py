"""
Component Test Layer Configuration

Structure:
    tests/component/
    └── campaign_planner/   Engines, service, API, repository and client
                            against in-memory or mocked collaborators

Usage:
    pytest tests/component -v
"""
import os
import sys

# Set testing environment BEFORE any imports
os.environ["ENV"] = "testing"
os.environ["ENVIRONMENT"] = "testing"

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))
