import dataclasses

import pytest

from nzbparse.core.extensions import ExtensionRules
from nzbparse.core.subject import (
    FilenameSplit,
    ParsedSubject,
    SubjectParser,
    leading_bracket_fallback,
    limit_length,
    parse_subject,
    promote_quoted_filename,
    refine_extension,
    split_header_filename,
)


@pytest.mark.parametrize(
    "subject, header, filename, base, files, segments",
    [
        (
            '[04/23] "Lili.en.Marleen.S03E07.FLEMISH.1080p.WEB.h264-TRIPEL" - '
            '"lili.en.marleen.s03e07.flemish.1080p.web.h264-tripel.r00" - yEnc(1/140)',
            "Lili.en.Marleen.S03E07.FLEMISH.1080p.WEB.h264-TRIPEL",
            "lili.en.marleen.s03e07.flemish.1080p.web.h264-tripel.r00",
            "lili.en.marleen.s03e07.flemish.1080p.web.h264-tripel",
            (4, 23),
            (1, 140),
        ),
        (
            '[1/2] Test Subject - "test.txt" yEnc (1/2)',
            "Test Subject", "test.txt", "test", (1, 2), (1, 2),
        ),
        (
            '"singlefile.nfo" yEnc (1/1)',
            "singlefile", "singlefile.nfo", "singlefile", (1, 1), (1, 1),
        ),
        (
            'Some Header - "archive.part01.rar" yEnc (12/120)',
            "Some Header", "archive.part01.rar", "archive", (1, 1), (12, 120),
        ),
        (
            '[ 5 of 12 ] "Example.txt" yEnc (1/1)',
            "Example", "Example.txt", "Example", (5, 12), (1, 1),
        ),
        (
            '[003/120] [03/140] "Release.Name.r03" yEnc',
            "Release.Name", "Release.Name.r03", "Release.Name", (3, 120), (3, 140),
        ),
        (
            '[04/23] "Release.Name" - "release.name.r00" - yEnc(1/140)',
            "Release.Name", "release.name.r00", "release.name", (4, 23), (1, 140),
        ),
    ],
)
def test_parse_subject_variants(subject, header, filename, base, files, segments):
    parsed = parse_subject(subject)

    assert parsed.header == header
    assert parsed.filename == filename
    assert parsed.base_filename == base
    assert (parsed.file_index, parsed.file_total) == files
    assert (parsed.segment_index, parsed.segment_total) == segments


def test_raw_is_trimmed_input():
    parsed = parse_subject('   [1/2] Test Subject - "test.txt" yEnc (1/2) \t')
    assert parsed.raw == '[1/2] Test Subject - "test.txt" yEnc (1/2)'


@pytest.mark.parametrize(
    "subject",
    [
        "Just some text without numbers",
        '"quoted.name.mkv"',
        "",
        "[[[ ]]] ((( )))",
    ],
)
def test_defaults_without_numbering(subject):
    parsed = parse_subject(subject)
    assert parsed.file_index == parsed.file_total == 1
    assert parsed.segment_index == parsed.segment_total == 1


def test_zero_total_is_kept():
    parsed = parse_subject('Header - "file.rar" yEnc (1/0)')

    assert parsed.segment_index == 1
    assert parsed.segment_total == 0
    assert parsed.file_total == 1
    assert parsed.filename == "file.rar"


def test_header_falls_back_to_base_filename():
    parsed = parse_subject('"Movie.mkv" yEnc (1/10)')

    assert parsed.header == "Movie"
    assert parsed.header == parsed.base_filename


def test_single_file_unquoted_filename():
    parsed = parse_subject("Test.S01E02.720p.mkv")

    assert (parsed.file_index, parsed.file_total) == (1, 1)
    assert (parsed.segment_index, parsed.segment_total) == (1, 1)
    assert parsed.filename == "Test.S01E02.720p.mkv"
    assert parsed.base_filename == "Test.S01E02.720p"
    assert parsed.header == "Test.S01E02.720p"


def test_single_file_without_extension_uses_remainder():
    parsed = parse_subject("Just some text without numbers")

    assert parsed.filename == "Just some text without numbers"
    assert parsed.base_filename == parsed.filename
    assert parsed.header == parsed.filename


def test_multi_file_without_filename_stays_empty():
    parsed = parse_subject("[2/3]")

    assert parsed.filename == ""
    assert parsed.base_filename == ""
    assert parsed.header == ""
    assert (parsed.file_index, parsed.file_total) == (2, 3)


def test_extension_plausibility_repicks_second_quote():
    parsed = parse_subject('[2/5] "My.Release.Name" - "my.release.name.part02.rar" yEnc (3/50)')

    assert parsed.filename == "my.release.name.part02.rar"
    assert parsed.base_filename == "my.release.name"
    assert parsed.header == "My.Release.Name"
    assert (parsed.file_index, parsed.file_total) == (2, 5)
    assert (parsed.segment_index, parsed.segment_total) == (3, 50)


def test_quoted_release_without_dot_promotes_later_quote():
    parsed = parse_subject('[1/3] "Release" - "release.nfo" yEnc (1/1)')

    assert parsed.header == "Release"
    assert parsed.filename == "release.nfo"
    assert parsed.base_filename == "release"


def test_angle_bracket_file_numbers():
    parsed = parse_subject('<3/7> "photo.jpg" yEnc (2/4)')

    assert (parsed.file_index, parsed.file_total) == (3, 7)
    assert (parsed.segment_index, parsed.segment_total) == (2, 4)
    assert parsed.filename == "photo.jpg"


def test_round_brackets_for_both_pairs():
    parsed = parse_subject('Release (1/5) "file.zip" yEnc (7/20)')

    assert (parsed.file_index, parsed.file_total) == (1, 5)
    assert (parsed.segment_index, parsed.segment_total) == (7, 20)
    assert parsed.header == "Release"
    assert parsed.filename == "file.zip"


def test_bare_file_numbers():
    parsed = parse_subject('Some.Show 04/10 "some.show.s01.mkv" yEnc (1/99)')

    assert (parsed.file_index, parsed.file_total) == (4, 10)
    assert parsed.header == "Some.Show"
    assert parsed.base_filename == "some.show.s01"


def test_natural_language_file_numbers():
    parsed = parse_subject('Holiday Photos - File 3 of 8 - "img_003.jpg" (1/2)')

    assert (parsed.file_index, parsed.file_total) == (3, 8)
    assert (parsed.segment_index, parsed.segment_total) == (1, 2)
    assert parsed.header == "Holiday Photos"
    assert parsed.filename == "img_003.jpg"


def test_german_natural_language_file_numbers():
    parsed = parse_subject('"Urlaub.zip" Datei 2 von 4 yEnc')

    assert (parsed.file_index, parsed.file_total) == (2, 4)
    assert parsed.filename == "Urlaub.zip"


def test_par2_volume_extension():
    parsed = parse_subject('[7/9] "release.vol03+04.par2" yEnc (1/3)')

    assert parsed.filename == "release.vol03+04.par2"
    assert parsed.base_filename == "release"


def test_custom_extension_rules():
    subject = '[1/2] "Comic.Issue.01" - "comic.issue.01.cbz" yEnc (1/3)'

    assert parse_subject(subject).filename == "Comic.Issue.01"

    parsed = parse_subject(subject, ExtensionRules().with_extensions("cbz"))
    assert parsed.filename == "comic.issue.01.cbz"
    assert parsed.base_filename == "comic.issue.01"
    assert parsed.header == "Comic.Issue.01"


def test_long_subject_keeps_raw_and_parses():
    subject = '[1/2] "file.rar" yEnc (1/5) ' + "x" * 5000
    parsed = parse_subject(subject)

    assert parsed.raw == subject.strip()
    assert parsed.filename == "file.rar"
    assert (parsed.file_index, parsed.file_total) == (1, 2)
    assert (parsed.segment_index, parsed.segment_total) == (1, 5)


def test_max_length_keeps_trailing_segment_pair():
    parser = SubjectParser(max_length=20)
    parsed = parser.parse('"a.rar" yEnc ' + "x" * 30 + " (3/9)")

    assert parsed.filename == "a.rar"
    assert (parsed.segment_index, parsed.segment_total) == (3, 9)


def test_limit_length():
    assert limit_length("short (1/2)", 64) == "short (1/2)"
    assert limit_length("a" * 30, 10) == "a" * 10
    assert limit_length("a" * 30 + " (1/5)", 10) == "a" * 10 + " (1/5)"
    # Pair cut in half by the limit is kept whole
    assert limit_length("abc (12/34)", 7) == "abc (12/34)"
    # Pairs far from the end are not carried over
    assert limit_length("abc (12/34) " + "y" * 100, 7) == "abc (12"
    assert limit_length("a" * 30, 0) == "a" * 30


def test_leading_bracket_fallback_sees_full_subject():
    parser = SubjectParser(max_length=20)
    parsed = parser.parse('[1/2] [3/4] ' + "x" * 20 + ' "name.rar" yEnc')

    assert parsed.filename == "name.rar"
    assert parsed.base_filename == "name"
    assert parsed.header == "name"
    assert (parsed.file_index, parsed.file_total) == (1, 2)


@pytest.mark.parametrize(
    "subject, header, filename, files, segments",
    [
        (
            '[003/120] [03/140] "Release.Name.r03" yEnc (1/7)',
            "Release.Name", "Release.Name.r03", (3, 140), (1, 7),
        ),
        (
            "3/8 Some.Name.S01 [03/140] yEnc (1/7)",
            "Some.Name", "Some.Name.S01", (3, 140), (1, 7),
        ),
    ],
)
def test_extra_number_pairs_do_not_leak_into_names(subject, header, filename, files, segments):
    parsed = parse_subject(subject)

    assert parsed.header == header
    assert parsed.filename == filename
    assert (parsed.file_index, parsed.file_total) == files
    assert (parsed.segment_index, parsed.segment_total) == segments


def test_pathological_input_does_not_raise():
    parsed = parse_subject("[" * 5000 + '"' * 3000)
    assert parsed.file_total == 1


def test_parsed_subject_is_frozen():
    parsed = parse_subject('"a.txt"')
    with pytest.raises(dataclasses.FrozenInstanceError):
        parsed.filename = "b.txt"


def test_display_name_and_to_dict():
    parsed = parse_subject('[1/2] Test Subject - "test.txt" yEnc (1/2)')

    assert parsed.display_name == "test.txt"
    assert parsed.to_dict()["segment_total"] == 2
    assert ParsedSubject(raw="raw text").display_name == "raw text"


def test_parser_is_shareable_between_threads():
    from concurrent.futures import ThreadPoolExecutor

    parser = SubjectParser()
    subjects = [f'[{i}/50] "file{i}.rar" yEnc (1/{i})' for i in range(1, 51)]

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(parser.parse, subjects))

    assert [r.file_index for r in results] == list(range(1, 51))
    assert all(r.filename == f"file{r.file_index}.rar" for r in results)


# Individual passes

def test_split_header_filename_rules():
    quoted = split_header_filename('Header - "name.part1.rar" yEnc', single_file=False)
    assert quoted == FilenameSplit("Header", "name.part1.rar", "name")

    unquoted = split_header_filename("name.tar.gz yEnc", single_file=False)
    assert unquoted == FilenameSplit("", "name.tar.gz", "name.tar")

    assert split_header_filename("no extension", single_file=False) == FilenameSplit()
    assert split_header_filename("no extension", single_file=True) == FilenameSplit(
        "", "no extension", "no extension")


def test_promote_requires_missing_extension():
    split = FilenameSplit("", "name.txt", "name")
    assert promote_quoted_filename(split, ["name.txt", "other.rar"]) is split


def test_refine_keeps_plausible_extension():
    split = FilenameSplit("", "name.r42", "name")
    rules = ExtensionRules()
    assert refine_extension(split, ["name.r42", "other.rar"], rules) is split


def test_refine_replaces_header_equal_to_base():
    split = FilenameSplit("Release", "Release.Name", "Release")
    refined = refine_extension(split, ["Release.Name", "release.name.rar"], ExtensionRules())

    assert refined == FilenameSplit("Release.Name", "release.name.rar", "release.name")


def test_refine_keeps_real_header():
    split = FilenameSplit("Group Post", "Release.Name", "Release")
    refined = refine_extension(split, ["Release.Name", "release.name.rar"], ExtensionRules())

    assert refined.header == "Group Post"
    assert refined.filename == "release.name.rar"


def test_leading_bracket_fallback():
    found = leading_bracket_fallback('[1/2] [3/4] "name.rar" yEnc', FilenameSplit())
    assert found == FilenameSplit("name", "name.rar", "name")

    kept = FilenameSplit("h", "f.txt", "f")
    assert leading_bracket_fallback('[1/2] "name.rar"', kept) is kept

    assert leading_bracket_fallback('Header "name.rar"', FilenameSplit()) == FilenameSplit()


def test_package_exports():
    import nzbparse

    assert nzbparse.parse_subject is parse_subject
    assert nzbparse.NZBParser.__name__ == "NZBParser"
    with pytest.raises(AttributeError):
        nzbparse.missing_name
