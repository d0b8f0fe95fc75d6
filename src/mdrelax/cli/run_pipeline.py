"""Command-line entry point for the relaxation pipeline.

Usage:
    mdrelax -t_mem 20 ns -Bfields 600.133 850.2
    mdrelax -folders folders.txt -multiref -Jw
    mdrelax -config my_config.py -D_ext 1.6e-5 1.2 -fit DisoS2 -expfile exp.dat

Options use single-dash long names (-t_mem, -Bfields).
Exit status: 0 on success, 2 for configuration errors, 1 for tool failures
and uninterpretable stage output.
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from mdrelax.contracts import ConfigurationError, PipelineError
from mdrelax.pipeline.local_motion import VECTOR_STORAGE
from mdrelax.pipeline.orchestrator import PipelineOrchestrator
from mdrelax.schemas import init_runtime_config

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdrelax",
        description="Derive NMR spin relaxation (R1, R2, NOE) from MD trajectories.",
        allow_abbrev=False,
    )
    flag = dict(action="store_const", const=True, default=None)

    files = parser.add_argument_group("sources and files")
    files.add_argument("-config", help="User config file (Python file with a CONFIG dict)")
    files.add_argument("-out", "-outpref", "-opref", dest="out", help="Output prefix (default: rotdif)")
    files.add_argument("-folders", dest="folders_file",
                       help="File listing simulation folders; enables multi-source mode")
    files.add_argument("-multiref", dest="multi_ref", help="Use one reference per folder", **flag)
    files.add_argument("-qfile", help="Quaternion orientation file name")
    files.add_argument("-pfile", help="PLUMED driver script name")
    files.add_argument("-refpdb", "-reffile", dest="refpdb", help="Reference coordinates")
    files.add_argument("-sxtc", help="Solute trajectory name")
    files.add_argument("-tpr", help="GROMACS run input used by the generators")
    files.add_argument("-expfile", dest="exp_file", help="Experimental relaxation data for -fit")

    orientation = parser.add_argument_group("orientation")
    orientation.add_argument("-xtc_step", type=float, help="Time between trajectory frames (ps)")
    orientation.add_argument("-genref", nargs="?", const="", metavar="CMD",
                             help="Generate missing reference coordinates, optionally with CMD")
    orientation.add_argument("-gentrj", nargs="?", const="", metavar="CMD",
                             help="Generate missing solute trajectories, optionally with CMD")
    orientation.add_argument("-pycmd", dest="python", help="Python interpreter for the analysis scripts")
    orientation.add_argument("-plumed", help="PLUMED executable")
    orientation.add_argument("-script_dir", help="Directory holding the analysis scripts")

    physics = parser.add_argument_group("conditions")
    physics.add_argument("-t_mem", nargs="+", metavar=("TIME", "UNIT"),
                         help="Memory time for global tumbling (default: 10 ns)")
    physics.add_argument("-Temp_MD", dest="temp_md", type=float, help="Simulation temperature (K)")
    physics.add_argument("-Temp_Exp", dest="temp_exp", type=float, help="Experimental temperature (K)")
    physics.add_argument("-D2O_Exp", dest="d2o_fraction", type=float, help="Experimental D2O fraction")
    physics.add_argument("-num_chunks", type=int, help="Chunks for the global diffusion fit")

    external = parser.add_argument_group("external overrides")
    external.add_argument("-D_ext", dest="d_ext", nargs="+", type=float, metavar="D",
                          help="Diso [Dani] [Drho] in ps^-1; rhombicity is ignored")
    external.add_argument("-tau_ext", nargs="+", metavar=("TIME", "UNIT"),
                          help="Global tumbling time; sets Diso = 1/(6 tau)")
    external.add_argument("-q_ext", dest="q_ext", nargs=4, type=float, metavar="Q",
                          help="PAF orientation quaternion w x y z")

    output = parser.add_argument_group("relaxation")
    output.add_argument("-Bfields", dest="bfields", nargs="+", metavar="MHZ",
                        help="Proton frequencies in MHz (default: 600.133)")
    output.add_argument("-vecstorage", dest="vec_storage", choices=list(VECTOR_STORAGE),
                        help="Vector distribution storage (default: Histogram)")
    output.add_argument("-fitatoms", dest="fit_atoms", help="Atom selection for the local-frame fit")
    output.add_argument("-fit", dest="fit_modes", nargs="*", metavar="MODE",
                        help="Optimise against -expfile: Diso, DisoS2, DisoCSA")
    output.add_argument("-zeta", type=float, help="S2 adjustment")
    output.add_argument("-Jw", dest="spectral_density", help="Also report spectral densities", **flag)
    output.add_argument("-bForce", dest="force", help="Redo fits even if present", **flag)
    output.add_argument("-workers", type=int, help="Fields computed in parallel (default: 1)")

    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = init_runtime_config(args)
        result = PipelineOrchestrator(config).run()
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return EXIT_CONFIG
    except PipelineError as e:
        logger.error("Pipeline failed: %s", e)
        return EXIT_FAILURE

    print(f"\n{'='*60}")
    print(f"Run:         {result.run_id}")
    print(f"Quaternion:  {result.orientation.vec_rot} ({result.orientation.source})")
    print(f"Diffusion:   {result.diffusion.d_argument}")
    print(f"Artifacts:   {len(result.relaxation_artifacts)}")
    print('='*60)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
