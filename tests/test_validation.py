"""
Tests for manifest and raw table validation.
"""

import copy

import pytest
import yaml

from timescales.io.manifest import (
    load_manifest,
    get_timescales,
    get_columns,
    get_raw_path,
    get_output_dir,
)
from timescales.validation import validate_input, ValidationError, InputValidationReport

from conftest import MANIFEST, make_raw


def _write(tmp_path, manifest, raw=None):
    if raw is not None:
        raw.write_csv(tmp_path / 'sos_data.csv')
    with open(tmp_path / 'manifest.yaml', 'w') as f:
        yaml.safe_dump(manifest, f)
    return tmp_path


class TestManifest:

    def test_load(self, data_dir):
        manifest = load_manifest(str(data_dir))
        assert manifest['_data_dir'] == str(data_dir)
        assert get_timescales(manifest)['window_days'] == 4

    def test_defaults_filled(self, tmp_path):
        _write(tmp_path, {'lakes': MANIFEST['lakes']})
        manifest = load_manifest(str(tmp_path))
        ts = get_timescales(manifest)
        assert ts['agg_steps'] == [1, 12, 288, 576]
        assert ts['ar_order'] == 1
        assert get_columns(manifest)['Chla_Conc_HYLB'] == 'chla'

    def test_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_manifest(str(tmp_path))

    def test_null_paths_block(self, tmp_path):
        _write(tmp_path, {'paths': None, 'lakes': MANIFEST['lakes']})
        manifest = load_manifest(str(tmp_path))
        assert get_raw_path(manifest) == str(tmp_path / 'raw.parquet')
        assert get_output_dir(manifest) == str(tmp_path / 'output')

    def test_custom_output_dir(self, tmp_path):
        manifest = copy.deepcopy(MANIFEST)
        manifest['paths']['output_dir'] = 'results'
        _write(tmp_path, manifest)
        assert get_output_dir(load_manifest(str(tmp_path))) == str(tmp_path / 'results')


class TestValidateInput:

    def test_valid(self, data_dir):
        report = validate_input(str(data_dir))
        assert isinstance(report, InputValidationReport)
        assert report.valid
        assert report.lakes == ['Paul', 'Peter']
        assert report.variables == ['chla']
        assert report.total_rows == 960
        assert 'PASSED' in report.summary()

    def test_missing_values_warn(self, tmp_path):
        _write(tmp_path, MANIFEST, make_raw(missing_every=10))
        report = validate_input(str(tmp_path))
        assert report.valid
        assert report.null_counts['chla'] == 96
        assert any('missing' in w for w in report.warnings)

    def test_bad_lake_roles(self, tmp_path, raw):
        manifest = copy.deepcopy(MANIFEST)
        manifest['lakes'] = {'Paul': 'reference', 'Peter': 'reference'}
        _write(tmp_path, manifest, raw)

        with pytest.raises(ValidationError) as exc:
            validate_input(str(tmp_path))
        assert any('lakes' in e for e in exc.value.errors)

    def test_unknown_lake(self, tmp_path, raw):
        manifest = copy.deepcopy(MANIFEST)
        manifest['lakes'] = {'Paul': 'reference', 'Tuesday': 'manipulated'}
        _write(tmp_path, manifest, raw)

        report = validate_input(str(tmp_path), raise_on_error=False)
        assert not report.valid
        assert any('Tuesday' in e for e in report.errors)

    def test_unknown_variable(self, tmp_path, raw):
        manifest = copy.deepcopy(MANIFEST)
        manifest['variables'] = ['oxygen']
        _write(tmp_path, manifest, raw)

        report = validate_input(str(tmp_path), raise_on_error=False)
        assert any(e.startswith('variables') for e in report.errors)

    def test_missing_column(self, tmp_path, raw):
        _write(tmp_path, MANIFEST, raw.drop('Chla_Conc_HYLB'))
        report = validate_input(str(tmp_path), raise_on_error=False)
        assert not report.valid
        assert 'chla' in report.errors[0]

    def test_bad_timescales(self, tmp_path, raw):
        manifest = copy.deepcopy(MANIFEST)
        manifest['timescales']['agg_steps'] = [0]
        manifest['timescales']['min_valid_fraction'] = 2
        _write(tmp_path, manifest, raw)

        report = validate_input(str(tmp_path), raise_on_error=False)
        assert len([e for e in report.errors if e.startswith('timescales')]) == 2

    def test_missing_raw(self, tmp_path):
        _write(tmp_path, MANIFEST)
        report = validate_input(str(tmp_path), raise_on_error=False)
        assert not report.valid
        assert 'not found' in report.errors[0]
        assert report.to_dict()['valid'] is False

    @pytest.mark.parametrize("fraction", ['half', None, True, [0.5]])
    def test_non_numeric_min_valid_fraction(self, tmp_path, raw, fraction):
        manifest = copy.deepcopy(MANIFEST)
        manifest['timescales']['min_valid_fraction'] = fraction
        _write(tmp_path, manifest, raw)

        report = validate_input(str(tmp_path), raise_on_error=False)
        assert not report.valid
        assert any(e.startswith('timescales: min_valid_fraction') for e in report.errors)
