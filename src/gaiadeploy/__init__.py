"""
gaiadeploy - GaiaNet multi-instance provisioning

Installs system dependencies and the CUDA toolkit on an Ubuntu or WSL host,
then installs, configures and starts one to four GaiaNet node instances,
each in its own directory and on its own port.
"""

__version__ = "1.0.0"
__author__ = "gaiadeploy Team"
__description__ = "GaiaNet multi-instance provisioning"
