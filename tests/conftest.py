import pytest
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from tests.fixtures.sample_data import SampleData
from rolecouple.rolecouple import count_couplings
from rolecouple.tally import CouplingTally


@pytest.fixture
def role_map():
    """Vocabulary holding Role 1 through Role 6."""
    return SampleData.create_role_map()


@pytest.fixture
def roles(role_map):
    """Roles 1..6 keyed by their number."""
    return {i: role_map.get_by_id(f'Role{i}n1') for i in range(1, 7)}


@pytest.fixture
def first_genome():
    """Single-contig genome with the ten-feature layout."""
    return SampleData.create_contigs(SampleData.FIRST_GENOME)


@pytest.fixture
def second_genome():
    """Single-contig genome with the six-feature layout."""
    return SampleData.create_contigs(SampleData.SECOND_GENOME)


@pytest.fixture
def counted_tally(role_map, first_genome):
    """Tally after one pass over the first genome."""
    tally = CouplingTally(role_map, SampleData.GAP)
    count_couplings(tally, first_genome)
    return tally


@pytest.fixture
def three_pass_tally(role_map, first_genome, second_genome):
    """Tally after the first genome twice and the second genome once."""
    tally = CouplingTally(role_map, SampleData.GAP)
    count_couplings(tally, first_genome)
    count_couplings(tally, first_genome)
    count_couplings(tally, second_genome)
    return tally


@pytest.fixture
def genome_dir(tmp_path):
    """Directory holding the first genome as a GenBank file."""
    directory = tmp_path / 'genomes'
    directory.mkdir()
    SampleData.write_genbank(str(directory / '12345.6.gbk'), SampleData.FIRST_GENOME)
    return str(directory)


@pytest.fixture
def role_file(tmp_path):
    """Role file for the sample vocabulary."""
    return SampleData.write_role_file(str(tmp_path / 'roles.tbl'))
