import json
import os
import unittest
from unittest.mock import patch
from click.testing import CliRunner
from opencvbuild.cli_logger import logger
from opencvbuild.main import cli

ENV_NAMES = [
    "INIT_CWD",
    "OPENCV4NODEJS_AUTOBUILD_OPENCV_VERSION",
    "OPENCV4NODEJS_AUTOBUILD_FLAGS",
    "OPENCV4NODEJS_BUILD_CUDA",
    "OPENCV4NODEJS_AUTOBUILD_WITHOUT_CONTRIB",
    "OPENCV4NODEJS_DISABLE_AUTOBUILD",
    "OPENCV_INCLUDE_DIR",
    "OPENCV_LIB_DIR",
    "OPENCV_BIN_DIR",
]

class TestMain(unittest.TestCase):

    def setUp(self):
        self.runner = CliRunner()
        env_patcher = patch.dict(os.environ)
        env_patcher.start()
        self.addCleanup(env_patcher.stop)
        for name in ENV_NAMES:
            os.environ.pop(name, None)
        for target in ('opencvbuild.build_env.logger', 'opencvbuild.config.logger',
                       'opencvbuild.decorators.logger'):
            patcher = patch(target)
            mock = patcher.start()
            self.addCleanup(patcher.stop)
            if target == 'opencvbuild.decorators.logger':
                self.decorator_logger = mock

    def test_show(self):
        """show prints the resolved configuration as JSON."""
        with self.runner.isolated_filesystem():
            with open("package.json", "w") as f:
                json.dump({"opencv4nodejs": {"autoBuildFlags": "-DWITH_X=ON"}}, f)
            result = self.runner.invoke(cli, ["--path", ".", "--opencv-version", "4.5.5", "--cuda", "show"])
        self.assertEqual(result.exit_code, 0)
        data = json.loads(result.output)
        self.assertEqual(data["opencv_version"], "4.5.5")
        self.assertEqual(data["auto_build_flags"], "-DWITH_X=ON")
        self.assertTrue(data["build_with_cuda"])
        self.assertFalse(data["is_without_contrib"])
        self.assertTrue(data["opt_hash"].startswith("-"))
        self.assertTrue(data["paths"]["opencv_root"].endswith("opencv-4.5.5" + data["opt_hash"]))

    def test_unset_options_fall_back_to_environment(self):
        os.environ["OPENCV4NODEJS_BUILD_CUDA"] = "1"
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ["--path", ".", "show"])
        self.assertEqual(result.exit_code, 0)
        self.assertTrue(json.loads(result.output)["build_with_cuda"])

    def test_no_cuda_overrides_environment(self):
        os.environ["OPENCV4NODEJS_BUILD_CUDA"] = "1"
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ["--path", ".", "--no-cuda", "show"])
        self.assertEqual(result.exit_code, 0)
        self.assertFalse(json.loads(result.output)["build_with_cuda"])

    def test_show_publishes_overrides(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ["--path", ".", "--lib-dir", "/opt/opencv/lib", "show"])
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(json.loads(result.output)["env_overrides"], {"OPENCV_LIB_DIR": "/opt/opencv/lib"})
        self.assertEqual(os.environ["OPENCV_LIB_DIR"], "/opt/opencv/lib")

    def test_paths(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ["--path", ".", "--opencv-version", "3.4.16", "paths"])
        self.assertEqual(result.exit_code, 0)
        lines = dict(line.split(": ", 1) for line in result.output.strip().splitlines())
        self.assertEqual(os.path.basename(lines["opencv_root"]), "opencv-3.4.16")
        self.assertEqual(lines["opencv4_include"], os.path.join(lines["opencv_root"], "build", "include", "opencv4"))

    def test_flags(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ["--path", ".", "--flags", "-DWITH_X=ON -DWITH_Y=OFF", "flags"])
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.output.splitlines(), ["-DWITH_X=ON", "-DWITH_Y=OFF"])

    def test_flags_empty(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ["--path", ".", "flags"])
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.output, "")

    @patch('os.sched_getaffinity', return_value={0, 1, 2, 3, 4, 5, 6, 7}, create=True)
    def test_cores(self, mock_affinity):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ["--path", ".", "cores"])
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.output.strip(), "8")

    def test_missing_root_directory(self):
        """A root directory that does not exist aborts the command."""
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ["--path", "does-not-exist", "show"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("does-not-exist does not exist", self.decorator_logger.error.call_args[0][0])

    @patch('opencvbuild.commands.version.logger')
    @patch('importlib.metadata.version', return_value="0.1.0")
    def test_version(self, mock_version, mock_logger):
        result = self.runner.invoke(cli, ["version"])
        self.assertEqual(result.exit_code, 0)
        mock_logger.info.assert_called_once_with("opencvbuild version 0.1.0")

class TestCommandOutputIsData(unittest.TestCase):
    """Loggers are left real here so informational lines would land in the output if they leaked."""

    def setUp(self):
        self.runner = CliRunner()
        env_patcher = patch.dict(os.environ)
        env_patcher.start()
        self.addCleanup(env_patcher.stop)
        for name in ENV_NAMES:
            os.environ.pop(name, None)

    def write_manifest(self):
        with open("package.json", "w") as f:
            json.dump({"opencv4nodejs": {"autoBuildFlags": "-DWITH_X=ON -DWITH_Y=OFF"}}, f)

    def test_show_output_is_json(self):
        with self.runner.isolated_filesystem():
            self.write_manifest()
            result = self.runner.invoke(cli, ["--path", ".", "show"])
        self.assertEqual(result.exit_code, 0)
        data = json.loads(result.output)
        self.assertEqual(data["auto_build_flags"], "-DWITH_X=ON -DWITH_Y=OFF")

    def test_paths_output_only_has_paths(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ["--path", ".", "paths"])
        self.assertEqual(result.exit_code, 0)
        names = [line.split(": ", 1)[0] for line in result.output.strip().splitlines()]
        self.assertEqual(names[0], "root_dir")
        self.assertEqual(names[-1], "auto_build_file")
        self.assertEqual(len(names), 11)

    def test_flags_output_only_has_flags(self):
        with self.runner.isolated_filesystem():
            self.write_manifest()
            result = self.runner.invoke(cli, ["--path", ".", "flags"])
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.output.splitlines(), ["-DWITH_X=ON", "-DWITH_Y=OFF"])

    def test_quiet_is_restored_after_command(self):
        with self.runner.isolated_filesystem():
            self.runner.invoke(cli, ["--path", ".", "show"])
        self.assertFalse(logger.quiet)

if __name__ == "__main__":
    unittest.main()
