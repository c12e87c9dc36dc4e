"""
Unit tests for labelfixer.__main__ module
"""
import runpy
import unittest
from unittest.mock import patch


class TestMainEntryPoint(unittest.TestCase):
    """Test the main entry point functionality"""

    def test_main_module_imports(self):
        """Test that main module can be imported"""
        import labelfixer.__main__
        self.assertTrue(hasattr(labelfixer.__main__, 'main'))

    @patch('labelfixer.cli.main')
    def test_exits_with_main_result(self, mock_main):
        """python -m labelfixer exits with main()'s return value"""
        mock_main.return_value = 1
        with self.assertRaises(SystemExit) as ctx:
            runpy.run_module('labelfixer', run_name='__main__')
        self.assertEqual(ctx.exception.code, 1)
        mock_main.assert_called_once()

    @patch('labelfixer.cli.main')
    def test_none_return_exits_zero(self, mock_main):
        """A None return from main() becomes exit code 0"""
        mock_main.return_value = None
        with self.assertRaises(SystemExit) as ctx:
            runpy.run_module('labelfixer', run_name='__main__')
        self.assertEqual(ctx.exception.code, 0)


if __name__ == '__main__':
    unittest.main()
