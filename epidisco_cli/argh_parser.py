import argh


class CustomArghParser(argh.ArghParser):
    """
    Modify the argh parser to accept hyphens or underscores, and to register
    pipeline subcommands
    """

    def _parse_optional(self, arg_string):
        # "--with-mutect2" and "--with_mutect2" are the same flag
        if (
            arg_string
            and len(arg_string) > 2
            and arg_string[0] in self.prefix_chars
            and arg_string[1] in self.prefix_chars
        ):
            arg_string = "--" + arg_string[2:].replace("-", "_")
        return super()._parse_optional(arg_string)

    def add_pipelines(self, pipelines):
        """Add a subcommand for each `(name, help, pipeline)`"""
        subparsers = self.add_subparsers(required=True, dest="command")
        for name, help_text, pipeline in pipelines:
            subparser = subparsers.add_parser(name, help=help_text)
            pipeline.add_arguments(subparser)
            subparser.set_defaults(pipeline=pipeline.main)
        return subparsers
