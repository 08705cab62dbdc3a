#!/usr/bin/env python3
"""
gaiadeploy - GaiaNet multi-instance provisioning

Main entry point for the command line interface.
"""

from gaiadeploy.cli import app

if __name__ == "__main__":
    app()
