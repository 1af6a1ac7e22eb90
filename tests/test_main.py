"""Tests for the subcommand dispatcher and both CLIs."""

import json

import pytest
import yaml


class TestMainDispatcher:
    def test_no_subcommand_shows_help(self, capsys):
        from cuecraft.main import main

        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code != 0  # should error without subcommand

    def test_beats_subcommand_exists(self):
        """Subcommand is recognized; its own parser fails on the missing path."""
        from cuecraft.main import main

        with pytest.raises(SystemExit):
            main(["beats"])

    def test_captions_subcommand_exists(self):
        from cuecraft.main import main

        with pytest.raises(SystemExit):
            main(["captions"])

    def test_invalid_subcommand_errors(self, capsys):
        from cuecraft.main import main

        with pytest.raises(SystemExit) as exc_info:
            main(["nonexistent"])
        assert exc_info.value.code != 0


class TestBeatsCli:
    def test_writes_beats_and_timeline(self, analysis_file, capsys):
        from cuecraft.main import main

        main(["beats", str(analysis_file), "--max-beats", "4", "--clips", "2"])

        output = analysis_file.parent / "song.beats.json"
        result = json.loads(output.read_text())
        assert [b["timestamp"] for b in result["beats"]] == [0.0, 2.0, 4.0, 6.0]
        assert result["durationInSeconds"] == 10.0
        assert [s["clip_index"] for s in result["timeline"]] == [1, 0, 1, 0]
        assert result["timeline"][-1]["start"] + result["timeline"][-1]["duration"] == pytest.approx(10.0)
        assert "Done: 4 beats, 4 segments" in capsys.readouterr().out

    def test_explicit_output_and_window(self, analysis_file, tmp_path):
        from cuecraft.beats_cli import main

        output = tmp_path / "out" / "cuts.json"
        main([
            str(analysis_file), "--output", str(output),
            "--start", "4", "--duration", "4", "--max-beats", "2",
        ])
        result = json.loads(output.read_text())
        assert [b["timestamp"] for b in result["beats"]] == [0.0, 2.0]
        assert result["windowDuration"] == 4.0

    def test_empty_analysis(self, tmp_path, capsys):
        from cuecraft.beats_cli import main

        path = tmp_path / "quiet.json"
        path.write_text(json.dumps({"analysis": [], "durationInSeconds": 5.0}))
        main([str(path)])
        result = json.loads((tmp_path / "quiet.beats.json").read_text())
        assert result["beats"] == []
        assert result["timeline"] == []
        assert "no beat-synced cuts" in capsys.readouterr().out

    def test_profile_applied(self, analysis_file, tmp_path):
        from cuecraft.beats_cli import main

        profile = tmp_path / "p.yaml"
        profile.write_text(yaml.dump({"timeline": {"overlap": 0.0}}))
        output = tmp_path / "b.json"
        main([str(analysis_file), "--max-beats", "2", "--profile", str(profile), "--output", str(output)])
        timeline = json.loads(output.read_text())["timeline"]
        assert timeline[0]["duration"] == pytest.approx(timeline[0]["base_duration"])

    def test_missing_analysis_file(self, tmp_path):
        from cuecraft.beats_cli import main

        with pytest.raises(FileNotFoundError):
            main([str(tmp_path / "nope.json")])

    @pytest.mark.parametrize("flags", [
        ["--start", "-1"],
        ["--max-beats", "-2"],
        ["--min-time-diff", "0"],
        ["--clips", "0"],
    ])
    def test_invalid_flags(self, analysis_file, flags):
        from cuecraft.beats_cli import main

        with pytest.raises(SystemExit):
            main([str(analysis_file), *flags])


class TestCaptionsCli:
    def test_processes_transcript(self, transcript_file, capsys):
        from cuecraft.main import main

        main(["captions", str(transcript_file)])

        output = transcript_file.parent / "talk.captions.json"
        result = json.loads(output.read_text())
        first, second = result["captions"]
        assert first["highlightedIndices"] == [3]  # keyword "fire"
        assert second["highlightedIndices"] == [0]
        assert len(first["parts"]) == 3
        assert first["absoluteEnd"] == 5.0
        assert "Done: 2 captions, 5 parts, 2 highlights" in capsys.readouterr().out

    def test_no_gaps_flag(self, transcript_file, tmp_path):
        from cuecraft.captions_cli import main

        output = tmp_path / "c.json"
        main([str(transcript_file), "--no-gaps", "3", "--output", str(output)])
        result = json.loads(output.read_text())
        assert result["captions"][0]["absoluteEnd"] == pytest.approx(7.0)
        assert result["options"]["no_gaps"] == {"enabled": True, "max_length": 3.0}

    def test_disable_metadata_flag(self, transcript_file, tmp_path):
        from cuecraft.captions_cli import main

        output = tmp_path / "c.json"
        main([str(transcript_file), "--disable-metadata", "--output", str(output)])
        first = json.loads(output.read_text())["captions"][0]
        # without the keyword, "fire" (2s) is the longest significant word
        assert first["highlightedIndices"] == [3]
        assert first["words"][3]["metadata"]["isHighlight"] is True

    def test_flags_override_profile(self, transcript_file, tmp_path):
        from cuecraft.captions_cli import main

        profile = tmp_path / "p.yaml"
        profile.write_text(yaml.dump({"options": {"max_lines": 2, "negative_offset": 0.5}}))
        output = tmp_path / "c.json"
        main([str(transcript_file), "--profile", str(profile), "--max-lines", "1", "--output", str(output)])
        result = json.loads(output.read_text())
        assert result["options"]["max_lines"] == 1
        assert result["options"]["negative_offset"] == 0.5
        assert [len(c["parts"]) for c in result["captions"]] == [1, 1]
        assert result["captions"][1]["absoluteStart"] == pytest.approx(6.5)

    def test_seeded_random_mode_repeatable(self, transcript_file, tmp_path):
        from cuecraft.captions_cli import main

        outputs = []
        for name in ("a.json", "b.json"):
            output = tmp_path / name
            main([str(transcript_file), "--highlight-mode", "random", "--seed", "3",
                  "--disable-metadata", "--output", str(output)])
            outputs.append(json.loads(output.read_text()))
        assert outputs[0] == outputs[1]

    def test_invalid_max_lines(self, transcript_file):
        from cuecraft.captions_cli import main

        with pytest.raises(SystemExit):
            main([str(transcript_file), "--max-lines", "0"])
