#!/usr/bin/env python3
"""Tests for jjstack.git.remote module."""

import subprocess
import unittest
from unittest.mock import MagicMock, patch

from jjstack.git.remote import gen_ssh_mux_cmd, get_remote_type, shared_ssh_session, start_muxed_ssh, stop_muxed_ssh


class TestGetRemoteType(unittest.TestCase):
    """Tests for get_remote_type function."""

    @patch("jjstack.git.remote.run_always_return")
    def test_get_remote_type_ssh(self, mock_run):
        """Test getting SSH remote type."""
        mock_run.return_value = "origin\tgit@github.com:user/repo.git (push)"
        result = get_remote_type("origin")
        self.assertEqual(result, "git@github.com")

    @patch("jjstack.git.remote.run_always_return")
    def test_get_remote_type_https(self, mock_run):
        """Test getting HTTPS remote type returns None."""
        mock_run.return_value = "origin\thttps://github.com/user/repo.git (push)"
        result = get_remote_type("origin")
        self.assertIsNone(result)

    @patch("jjstack.git.remote.run_always_return")
    def test_get_remote_type_other_remote(self, mock_run):
        """Test only the requested remote is considered."""
        mock_run.return_value = (
            "fork\tgit@example.com:me/repo.git (push)\n"
            "upstream\tssh://git@github.com:org/repo.git (push)"
        )
        self.assertEqual(get_remote_type("upstream"), "git@github.com")
        self.assertIsNone(get_remote_type("origin"))


class TestGenSshMuxCmd(unittest.TestCase):
    """Tests for gen_ssh_mux_cmd function."""

    def test_gen_ssh_mux_cmd(self):
        """Test SSH mux command generation."""
        cmd = gen_ssh_mux_cmd()
        self.assertEqual(cmd[0], "ssh")
        self.assertIn("-o", cmd)
        self.assertIn("ControlMaster=auto", cmd)
        self.assertIn("ControlPath=~/.ssh/jjstack-%C", cmd)


class TestStopMuxedSsh(unittest.TestCase):
    """Tests for stop_muxed_ssh function."""

    @patch("jjstack.git.remote.get_config")
    @patch("jjstack.git.remote.get_remote_type")
    @patch("jjstack.git.remote.gen_ssh_mux_cmd")
    @patch("subprocess.Popen")
    def test_stop_muxed_ssh(self, mock_popen, mock_gen_cmd, mock_get_remote, mock_get_config):
        """Test stopping muxed SSH connection."""
        mock_get_config.return_value = MagicMock(share_ssh_session=True, remote_name="origin")
        mock_get_remote.return_value = "git@github.com"
        mock_gen_cmd.return_value = ["ssh", "-S"]

        stop_muxed_ssh()

        mock_get_remote.assert_called_once_with("origin")
        mock_popen.assert_called_once_with(
            ["ssh", "-S", "-O", "exit", "git@github.com"],
            stderr=subprocess.DEVNULL
        )

    @patch("jjstack.git.remote.get_config")
    @patch("subprocess.Popen")
    def test_stop_muxed_ssh_disabled(self, mock_popen, mock_get_config):
        """Test stop_muxed_ssh does nothing when disabled."""
        mock_get_config.return_value = MagicMock(share_ssh_session=False)
        stop_muxed_ssh()
        mock_popen.assert_not_called()

    @patch("jjstack.git.remote.get_config")
    @patch("jjstack.git.remote.get_remote_type")
    @patch("subprocess.Popen")
    def test_stop_muxed_ssh_no_host(self, mock_popen, mock_get_remote, mock_get_config):
        """Test stop_muxed_ssh does nothing when no SSH host."""
        mock_get_config.return_value = MagicMock(share_ssh_session=True, remote_name="origin")
        mock_get_remote.return_value = None
        stop_muxed_ssh()
        mock_popen.assert_not_called()


class TestStartMuxedSsh(unittest.TestCase):
    """Tests for start_muxed_ssh function."""

    @patch("jjstack.git.remote.get_config")
    @patch("jjstack.git.remote.get_remote_type")
    def test_start_muxed_ssh_disabled(self, mock_get_remote, mock_get_config):
        """Test start_muxed_ssh does nothing when disabled."""
        mock_get_config.return_value = MagicMock(share_ssh_session=False)
        start_muxed_ssh()
        mock_get_remote.assert_not_called()


class TestSharedSshSession(unittest.TestCase):
    """Tests for shared_ssh_session context manager."""

    @patch("jjstack.git.remote.stop_muxed_ssh")
    @patch("jjstack.git.remote.start_muxed_ssh")
    def test_stops_even_on_error(self, mock_start, mock_stop):
        """Test the session is torn down when the block raises."""
        with self.assertRaises(RuntimeError):
            with shared_ssh_session("origin"):
                raise RuntimeError("boom")
        mock_start.assert_called_once_with("origin")
        mock_stop.assert_called_once_with("origin")


if __name__ == "__main__":
    unittest.main()
