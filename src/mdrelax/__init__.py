"""`mdrelax` - NMR spin relaxation from molecular-dynamics trajectories.

Subpackages:
- physics: Unit conversion, viscosity correction, diffusion-tensor parsing
- pipeline: Source resolution, artifact cache, stages, orchestrator
- schemas: Layered configuration (expert defaults < user file < CLI)
- contracts: Fail-fast stage invariants and error kinds
- cli: Command-line entry point
"""

__version__ = "0.1.0"
