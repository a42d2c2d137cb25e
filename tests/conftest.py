import pytest

SAMPLE_NZB = """<?xml version="1.0" encoding="utf-8" ?>
<!DOCTYPE nzb PUBLIC "-//newzBin//DTD NZB 1.1//EN" "http://www.newzbin.com/DTD/nzb/nzb-1.1.dtd">
<nzb xmlns="http://www.newzbin.com/DTD/2003/nzb">
 <!-- Test comment -->
 <head>
  <meta type="title">Test Title</meta>
  <meta type="password">secret</meta>
 </head>
 <file poster="Poster &lt;poster@example.com&gt;" date="1234567890" subject="[1/2] Test Subject - &quot;test.txt&quot; yEnc (1/2)">
  <groups>
   <group>alt.binaries.test</group>
   <group>alt.binaries.misc</group>
  </groups>
  <segments>
   <segment bytes="3456" number="2">part2@example.com</segment>
   <segment bytes="3456" number="1">part1@example.com</segment>
  </segments>
 </file>
</nzb>
"""


@pytest.fixture
def sample_nzb() -> str:
    return SAMPLE_NZB


@pytest.fixture
def sample_nzb_file(tmp_path):
    path = tmp_path / "sample.nzb"
    path.write_text(SAMPLE_NZB, encoding="utf-8")
    return path
