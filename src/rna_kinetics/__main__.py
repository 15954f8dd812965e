"""
`python -m rna_kinetics {trajectory,timecourse,plot} ...` dispatches to the
matching command-line front end.
"""
import sys

from rna_kinetics.scripts import ff_timecourse, ff_trajectory

COMMANDS = {
    "trajectory": ff_trajectory.main,
    "timecourse": ff_timecourse.main,
}


def main(argv=None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    if argv and argv[0] == "plot":
        # matplotlib is only imported when plotting.
        from rna_kinetics.scripts import occupancy_plot
        return occupancy_plot.main(argv[1:])
    if not argv or argv[0] not in COMMANDS:
        print(f"usage: python -m rna_kinetics {{{','.join([*COMMANDS, 'plot'])}}} [options]", file=sys.stderr)
        return 2
    return COMMANDS[argv[0]](argv[1:])


if __name__ == '__main__':
    sys.exit(main())
