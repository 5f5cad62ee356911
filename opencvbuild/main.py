import click
from .build_env import BuildOptions
from .commands import *


@click.group()
@click.option("--path", "-p", default=None, help="Project directory holding package.json (defaults to INIT_CWD or the current directory).")
@click.option("--opencv-version", default=None, help="OpenCV version to build.")
@click.option("--flags", "auto_build_flags", default=None, help="Extra CMake flags, separated by single spaces.")
@click.option("--cuda/--no-cuda", default=None, help="Build with CUDA support.")
@click.option("--without-contrib/--with-contrib", default=None, help="Exclude the opencv_contrib modules.")
@click.option("--disable-auto-build/--enable-auto-build", default=None, help="Disable the automatic OpenCV build.")
@click.option("--include-dir", default=None, help="Use an existing OpenCV include directory.")
@click.option("--lib-dir", default=None, help="Use an existing OpenCV library directory.")
@click.option("--bin-dir", default=None, help="Use an existing OpenCV binary directory.")
@click.pass_context
def cli(ctx, path, opencv_version, auto_build_flags, cuda, without_contrib, disable_auto_build, include_dir, lib_dir, bin_dir):
    """OpenCV build configuration tool."""
    # only options given on the command line become explicit parameters
    ctx.obj = BuildOptions(
        version=opencv_version,
        auto_build_build_cuda=cuda,
        auto_build_without_contrib=without_contrib,
        disable_auto_build=disable_auto_build,
        auto_build_flags=auto_build_flags,
        rootcwd=path,
        opencv_include_dir=include_dir,
        opencv_lib_dir=lib_dir,
        opencv_bin_dir=bin_dir,
    )

cli.add_command(show)
cli.add_command(paths)
cli.add_command(flags)
cli.add_command(cores)
cli.add_command(version)
cli.add_command(log)

if __name__ == "__main__":
    try:
        cli()
    except Exception as e:
        click.echo(f"An unexpected error occurred: {e}", err=True)
