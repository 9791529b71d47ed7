"""
Report Generator
Creates analysis reports and output files in various formats.
"""

import json
from pathlib import Path
from typing import Dict, Any, List

from ..utils import format_altitude, format_duration


class ReportGenerator:
    """
    Generates analysis reports in multiple formats.
    """

    def generate_report(self, analysis_results: Dict[str, Any],
                        output_path: str, format: str = 'json'):
        """
        Generate analysis report.

        Args:
            analysis_results: Complete analysis results
            output_path: Output file path
            format: Report format ('json', 'txt', 'html')
        """
        if format == 'json':
            self._generate_json_report(analysis_results, output_path)
        elif format == 'txt':
            self._generate_text_report(analysis_results, output_path)
        elif format == 'html':
            self._generate_html_report(analysis_results, output_path)
        else:
            raise ValueError(f"Unsupported format: {format}")

    def _generate_json_report(self, results: Dict[str, Any], output_path: str):
        """Generate JSON report."""
        with open(output_path, 'w') as f:
            json.dump(results, f, indent=2, default=str)

    def _generate_text_report(self, results: Dict[str, Any], output_path: str):
        """Generate text report."""
        metadata = results['metadata']
        summary = results['statistics']['summary']

        with open(output_path, 'w') as f:
            f.write("=" * 70 + "\n")
            f.write("AIRPROX PROXIMITY ANALYSIS REPORT\n")
            f.write("=" * 70 + "\n\n")

            f.write(f"Generated: {metadata['analysis_date']}\n")
            f.write(f"Time span: {metadata['t_start']} - {metadata['t_end']} s\n\n")

            # Overview
            f.write("OVERVIEW\n")
            f.write("-" * 70 + "\n")
            f.write(f"Aircraft: {summary['num_aircraft']:,}\n")
            f.write(f"Flight time: {format_duration(summary['num_flightsecs'])}\n")
            f.write(f"Close time: {format_duration(summary['time_close'])}\n")
            f.write(f"Max altitude: {format_altitude(summary['alt_max'])}\n\n")

            # Encounters
            f.write(f"ENCOUNTERS ({len(results['encounters'])})\n")
            f.write("-" * 70 + "\n")
            for enc in results['encounters']:
                a, b = enc['aircraft_ids']
                f.write(f"  #{enc['id']:3d}: {a} / {b}  t={enc['time_start']}-{enc['time_end']}\n")
                f.write(f"        d_min: {enc['d_min']:.1f} m, p_close: {enc['p_close']:.2f}, "
                        f"v_max: {enc['v_max']:.1f} m/s\n")
            f.write("\n")

            # Flocks
            f.write(f"FLOCKS ({len(results['flocks'])})\n")
            f.write("-" * 70 + "\n")
            for flock in results['flocks']:
                f.write(f"  #{flock['id']:3d}: t={flock['time_start']}-{flock['time_end']}  "
                        f"duration: {format_duration(flock['duration'])}, "
                        f"size: {flock['av_size']:.1f}\n")
            f.write("\n")

            # Penalties
            f.write("PENALTIES\n")
            f.write("-" * 70 + "\n")
            for entry in sorted(results['statistics']['penalties'],
                                key=lambda p: p['penalty'], reverse=True):
                if entry['n_encounters']:
                    f.write(f"  {entry['id']:<12} {entry['penalty']:7.1f} m "
                            f"({entry['n_encounters']} encounters)\n")
            f.write("\n")

    def _generate_html_report(self, results: Dict[str, Any], output_path: str):
        """Generate HTML report."""
        summary = results['statistics']['summary']
        html = f"""
<!DOCTYPE html>
<html>
<head>
    <title>AIRPROX Proximity Analysis Report</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 40px; }}
        h1 {{ color: #2c3e50; }}
        h2 {{ color: #34495e; border-bottom: 2px solid #3498db; padding-bottom: 10px; }}
        table {{ border-collapse: collapse; width: 100%; margin: 20px 0; }}
        th, td {{ border: 1px solid #ddd; padding: 12px; text-align: left; }}
        th {{ background-color: #3498db; color: white; }}
        tr:nth-child(even) {{ background-color: #f2f2f2; }}
        .stat {{ background: #ecf0f1; padding: 20px; margin: 10px 0; border-radius: 5px; }}
    </style>
</head>
<body>
    <h1>🛩️ AIRPROX Proximity Analysis Report</h1>
    <p>Generated: {results['metadata']['analysis_date']}</p>

    <h2>Overview</h2>
    <div class="stat">
        <p><strong>Aircraft:</strong> {summary['num_aircraft']:,}</p>
        <p><strong>Flight time:</strong> {format_duration(summary['num_flightsecs'])}</p>
        <p><strong>Encounters:</strong> {len(results['encounters']):,}</p>
        <p><strong>Flocks:</strong> {len(results['flocks']):,}</p>
    </div>

    <h2>Encounters</h2>
    <table>
        <tr>
            <th>#</th>
            <th>Aircraft</th>
            <th>Time</th>
            <th>Min Distance</th>
            <th>Probability</th>
            <th>Position</th>
        </tr>
"""

        for enc in results['encounters']:
            html += f"""
        <tr>
            <td>{enc['id']}</td>
            <td>{' / '.join(enc['aircraft_ids'])}</td>
            <td>{enc['time_start']} - {enc['time_end']}</td>
            <td>{enc['d_min']:.1f} m</td>
            <td>{enc['p_close']:.2f}</td>
            <td>({enc['latitude']:.5f}, {enc['longitude']:.5f})</td>
        </tr>
"""

        html += """
    </table>
</body>
</html>
"""

        with open(output_path, 'w') as f:
            f.write(html)


def write_outputs(results: Dict[str, Any], directory: str) -> List[Path]:
    """
    Write the standard set of output files.

    Files: encounters.json, flocks.json, penalty.json, summary.json and
    report.txt.

    Returns:
        Paths written
    """
    out = Path(directory)
    out.mkdir(parents=True, exist_ok=True)
    statistics = results['statistics']

    documents = {
        'encounters.json': results['encounters'],
        'flocks.json': results['flocks'],
        'penalty.json': {
            'penalties': statistics['penalties'],
            'scoring_penalties': statistics['scoring_penalties'],
        },
        'summary.json': {
            'metadata': results['metadata'],
            'summary': statistics['summary'],
            'flight_times': statistics['flight_times'],
            'baro_error_m': statistics.get('baro_error_m'),
        },
    }

    written = []
    for name, document in documents.items():
        path = out / name
        with open(path, 'w') as f:
            json.dump(document, f, indent=2, default=str)
        written.append(path)

    report_path = out / 'report.txt'
    ReportGenerator().generate_report(results, str(report_path), format='txt')
    written.append(report_path)

    if 'traces' in results:
        path = out / 'traces.json'
        with open(path, 'w') as f:
            json.dump(results['traces'], f, indent=2)
        written.append(path)

    return written
