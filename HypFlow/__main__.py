from argparse import ArgumentParser

from HypFlow.problem import Problem


def get_parser():

    parser = ArgumentParser(prog='hypflow')
    required = parser.add_argument_group('required arguments')
    required.add_argument('-i', '--input',
                          dest="filename",
                          help="YAML input file",
                          required=True)

    return parser


def main():

    # load problem from yaml
    parser = get_parser()
    args = parser.parse_args()
    problem = Problem.from_yaml(args.filename)

    # Run
    problem.run()


if __name__ == "__main__":
    main()
