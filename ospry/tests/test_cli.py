"""Tests for CLI module."""

import json
import pytest

from ospry.cli import create_parser, format_options, main
from ospry.errors import MalformedInput, NotFound


class TestCreateParser:
    """Tests for argument parser creation."""

    def test_parser_created(self):
        """Test parser is created successfully."""
        parser = create_parser()
        assert parser is not None

    def test_format_url_command(self):
        """Test format-url command parsing."""
        parser = create_parser()
        args = parser.parse_args([
            'format-url', 'https://img.example/i/abc',
            '--format', 'png', '--max-width', '200', '--expire-seconds', '30'
        ])

        assert args.command == 'format-url'
        assert args.url == 'https://img.example/i/abc'
        assert args.format == 'png'
        assert args.max_width == 200
        assert args.max_height is None
        assert args.expire_seconds == 30.0

    def test_expiry_flags_exclusive(self):
        """Test --expire-seconds and --expire-at can't be combined."""
        parser = create_parser()
        with pytest.raises(SystemExit):
            parser.parse_args([
                'format-url', 'https://img.example/i/abc',
                '--expire-seconds', '30', '--expire-at', '2024-01-01T00:00:00Z'
            ])

    def test_ids_commands(self):
        """Test metadata commands take one or more ids."""
        parser = create_parser()
        args = parser.parse_args(['private', 'img-1', 'img-2', '--key', 'k'])

        assert args.command == 'private'
        assert args.ids == ['img-1', 'img-2']
        assert args.key == 'k'

    def test_gallery_defaults(self):
        parser = create_parser()
        args = parser.parse_args(['gallery'])

        assert args.host == 'localhost'
        assert args.port == 3000


class TestFormatOptions:
    """Tests for collecting format options from arguments."""

    def test_only_given_options(self):
        args = create_parser().parse_args(['format-url', 'u', '--max-height', '0', '--format', ''])

        assert format_options(args) == {'max_height': 0, 'format': ''}

    def test_expire_at_parsed(self, fixed_now):
        args = create_parser().parse_args(['format-url', 'u', '--expire-at', '2024-01-01T00:00:00Z'])

        assert format_options(args) == {'expire_at': fixed_now}

    def test_bad_expire_at(self):
        args = create_parser().parse_args(['format-url', 'u', '--expire-at', 'soon'])

        with pytest.raises(MalformedInput):
            format_options(args)


class TestMain:
    """Tests for main entry point."""

    def test_no_command(self):
        """Test running without command shows help."""
        result = main([])
        assert result == 1


class TestCmdFormatUrl:
    """Tests for format-url command."""

    def test_unsigned_without_key(self, clean_env, capsys):
        """Test unsigned urls need no key."""
        result = main(['format-url', 'https://img.example/i/abc', '--max-height', '150'])

        assert result == 0
        assert capsys.readouterr().out.strip() == 'https://img.example/i/abc?maxHeight=150'

    def test_signed(self, clean_env, capsys):
        result = main(['format-url', 'https://img.example/i/abc', '--expire-seconds', '30', '--key', 'k'])

        assert result == 0
        assert capsys.readouterr().out.startswith('https://api.ospry.io/?signature=')

    def test_signed_without_key(self, clean_env, capsys):
        """Test signing fails without a key."""
        result = main(['format-url', 'https://img.example/i/abc', '--expire-seconds', '30'])

        assert result == 1
        assert capsys.readouterr().out == ''

    def test_key_from_env(self, clean_env, capsys):
        clean_env.setenv('OSPRY_SECRET', 'k')

        result = main(['format-url', 'https://img.example/i/abc', '--expire-seconds', '30'])

        assert result == 0

    def test_invalid_format(self, clean_env):
        result = main(['format-url', 'https://img.example/i/abc', '--format', 'webp'])

        assert result == 1

    def test_invalid_expire_at(self, clean_env):
        result = main(['format-url', 'https://img.example/i/abc', '--expire-at', 'soon', '--key', 'k'])

        assert result == 1

    @pytest.mark.parametrize('seconds', ['nan', 'inf'])
    def test_non_finite_expiry(self, clean_env, capsys, seconds):
        """Test argparse floats that can't be an expiry are reported."""
        result = main(['format-url', 'https://img.example/i/abc', '--expire-seconds', seconds, '--key', 'k'])

        assert result == 1
        assert capsys.readouterr().out == ''

    def test_invalid_url(self, clean_env):
        result = main(['format-url', 'not a url', '--max-width', '10'])

        assert result == 1


class TestCmdUpload:
    """Tests for upload command."""

    def test_file_not_found(self, clean_env):
        """Test upload with non-existent file."""
        result = main(['upload', '/nonexistent/cat.jpg', '--key', 'k'])

        assert result == 1

    def test_missing_key(self, clean_env, tmp_path):
        path = tmp_path / 'cat.jpg'
        path.write_bytes(b'data')

        result = main(['upload', str(path)])

        assert result == 1

    def test_upload(self, clean_env, mocker, client, mock_transport, metadata_dict,
                    sample_image_bytes, tmp_path, capsys):
        """Test the file is uploaded under its basename."""
        mocker.patch('ospry.cli.Ospry.from_config', return_value=client)
        mock_transport.call.return_value = [metadata_dict]
        path = tmp_path / 'cat.jpg'
        path.write_bytes(sample_image_bytes)

        result = main(['upload', str(path), '--private', '--key', 'k'])

        assert result == 0
        url = mock_transport.call.call_args.args[1]
        assert url.endswith('/images?filename=cat.jpg&isPrivate=true')
        assert json.loads(capsys.readouterr().out)[0]['id'] == 'img-1'


class TestCmdDownload:
    """Tests for download command."""

    def test_download(self, clean_env, mocker, client, mock_transport, tmp_path):
        """Test the image is written to the output file."""
        mocker.patch('ospry.cli.Ospry.from_config', return_value=client)
        mock_transport.stream.return_value = iter([b'ab', b'cd'])
        output = tmp_path / 'out.jpg'

        result = main(['download', 'https://img.example/i/abc', str(output), '--max-width', '50'])

        assert result == 0
        assert output.read_bytes() == b'abcd'
        mock_transport.stream.assert_called_once_with(
            'https://img.example/i/abc?maxWidth=50', chunk_size=64 * 1024
        )

    def test_download_error(self, clean_env, mocker, client, mock_transport, tmp_path):
        mocker.patch('ospry.cli.Ospry.from_config', return_value=client)
        mock_transport.stream.side_effect = NotFound()

        result = main(['download', 'https://img.example/i/abc', str(tmp_path / 'out.jpg')])

        assert result == 1


class TestCmdImages:
    """Tests for metadata commands."""

    def test_metadata(self, clean_env, mocker, client, mock_transport, metadata_dict, capsys):
        """Test metadata is printed as JSON."""
        mocker.patch('ospry.cli.Ospry.from_config', return_value=client)
        mock_transport.call.return_value = [metadata_dict]

        result = main(['metadata', 'img-1', '--key', 'k'])

        assert result == 0
        printed = json.loads(capsys.readouterr().out)
        assert printed[0]['id'] == 'img-1'
        assert printed[0]['timeCreated'] == '2024-01-01T12:30:00.250Z'

    def test_delete_prints_nothing(self, clean_env, mocker, client, mock_transport, capsys):
        mocker.patch('ospry.cli.Ospry.from_config', return_value=client)
        mock_transport.call.return_value = []

        result = main(['delete', 'img-1', '--key', 'k'])

        assert result == 0
        assert capsys.readouterr().out == ''
        assert mock_transport.call.call_args.args[0] == 'DELETE'

    def test_api_error(self, clean_env, mocker, client, mock_transport):
        mocker.patch('ospry.cli.Ospry.from_config', return_value=client)
        mock_transport.call.side_effect = NotFound()

        result = main(['private', 'img-1', '--key', 'k'])

        assert result == 1

    def test_missing_key(self, clean_env):
        result = main(['claim', 'img-1'])

        assert result == 1
