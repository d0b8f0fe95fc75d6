"""mdrelax User Configuration.

This is the user-facing configuration file. Modify settings here to customize
the pipeline behavior. Advanced settings are in src/mdrelax/schemas/param.py

Usage:
    mdrelax -config scripts/user_config.py
    mdrelax -config scripts/user_config.py -Bfields 600.133 850.2
    mdrelax -config scripts/user_config.py -folders folders.txt -multiref

Options given on the command line override the values below.
"""

CONFIG = {
    # ========================================================================
    # OUTPUT & SOURCES
    # ========================================================================
    "OUT": "rotdif",          # Output prefix; artifacts are <OUT>-<T_MEM>ns-*
    "FOLDERS": None,          # List of simulation folders (None = working directory)
    "MULTIREF": False,        # One reference structure per folder

    # ========================================================================
    # INPUT FILES (relative names resolve inside each folder)
    # ========================================================================
    "SXTC": "solute.xtc",     # Solute trajectory
    "REFPDB": "reference.pdb",
    "TPR": "topol.tpr",       # Only needed to generate missing inputs
    "QFILE": "colvar-qorient",
    "PFILE": "plumed-quat.dat",
    "XTC_STEP": None,         # Time between frames in ps (None = ask gmx check)
    "GENREF": False,          # True, or a command with {output} and {tpr}
    "GENTRJ": False,

    # ========================================================================
    # GLOBAL TUMBLING
    # ========================================================================
    "T_MEM": "10 ns",         # Memory time for the global diffusion fit
    "TEMP_MD": 300,           # Simulation temperature (K)
    "TEMP_EXP": 297,          # Experimental temperature (K)
    "D2O_EXP": 0.09,          # D2O fraction of the NMR sample

    # External values replace the simulated ones
    "D_EXT": None,            # [Diso] or [Diso, Dani] in ps^-1
    "TAU_EXT": None,          # e.g. "4.5 ns"; Diso = 1/(6 tau)
    "Q_EXT": None,            # [w, x, y, z]

    # ========================================================================
    # LOCAL MOTION & RELAXATION
    # ========================================================================
    "VEC_STORAGE": "Histogram",  # Histogram, PhiTheta or TextPhiTheta
    "FIT_ATOMS": None,        # Atom selection for the local-frame fit
    "BFIELDS": [600.133],     # Proton frequencies in MHz
    "JW": False,              # Also write spectral densities
    "FIT": [],                # Fit modes, e.g. ["DisoS2"]; needs EXPFILE
    "EXPFILE": None,
    "WORKERS": 1,             # Fields computed in parallel

    # ========================================================================
    # TOOLS
    # ========================================================================
    "SCRIPT_DIR": ".",        # Directory with the calculate-*.py scripts
    "PYTHON": "python",
    "PLUMED": "plumed",
}
