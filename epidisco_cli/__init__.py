from . import argh_parser
from .epidisco import DescribePipeline, PlanPipeline


def main():
    """main entry point for this project"""
    parser = argh_parser.CustomArghParser(
        description="Tumor/normal somatic variant and neoantigen analysis"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        help="Verbose logging",
        action="store_const",
        dest="loglevel",
        const="INFO",
        default="WARNING",
    )
    parser.add_argument(
        "-d",
        "--debug",
        help="Print debugging info",
        action="store_const",
        dest="loglevel",
        const="DEBUG",
    )
    parser.add_pipelines(
        [
            (
                "describe",
                "Print the run name, run directory and report contents",
                DescribePipeline(),
            ),
            (
                "plan",
                "Print the commands of the run in dependency order",
                PlanPipeline(),
            ),
        ]
    )

    args = parser.parse_args()
    args.pipeline(args)


if __name__ == "__main__":
    main()
