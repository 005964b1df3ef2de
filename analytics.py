"""
Mark statistics for the student and teacher dashboards and the grade report.

Everything here works on plain lists of mark/subject/student dicts as returned
by the data layer; nothing touches the database.
"""

from datetime import datetime

from db import TERMS

EXCELLENT_MIN = 75
PASS_MIN = 50

LETTER_GRADES = [
    ('A', 75, 'Excellent'),
    ('B', 65, 'Very Good'),
    ('C', 55, 'Good'),
    ('S', 35, 'Pass'),
    ('F', 0, 'Fail'),
]

BAND_EXCELLENT = 'Excellent (≥75)'
BAND_AVERAGE = 'Average (50-74)'
BAND_NEEDS_HELP = 'Needs Help (<50)'


def letter_grade(score):
    """Report letter for a 0-100 score."""
    score = float(score or 0)
    for letter, minimum, _label in LETTER_GRADES:
        if score >= minimum:
            return letter
    return 'F'


def performance_band(score):
    score = float(score or 0)
    if score >= EXCELLENT_MIN:
        return BAND_EXCELLENT
    if score >= PASS_MIN:
        return BAND_AVERAGE
    return BAND_NEEDS_HELP


def score_level(score):
    """CSS-ish level used to colour a score badge."""
    score = float(score or 0)
    if score >= EXCELLENT_MIN:
        return 'high'
    if score >= PASS_MIN:
        return 'medium'
    return 'low'


def average(scores):
    """Mean rounded to one decimal; 0 for an empty list."""
    values = [float(s) for s in scores if s is not None]
    if not values:
        return 0
    return round(sum(values) / len(values), 1)


def subject_name(subjects, subject_id):
    for subject in subjects:
        if subject.get('id') == subject_id:
            return subject.get('name') or 'Unknown Subject'
    return 'Unknown Subject'


def mark_date(mark):
    timestamp = mark.get('timestamp')
    if not timestamp:
        return ''
    return datetime.fromtimestamp(timestamp / 1000).strftime('%Y-%m-%d')


def newest_first(marks):
    return sorted(marks, key=lambda m: m.get('timestamp') or 0, reverse=True)


def latest_mark_per_subject(marks):
    latest = {}
    for mark in newest_first(marks):
        latest.setdefault(mark.get('subject_id'), mark)
    return latest


def student_overview(marks, subjects):
    """Chart series for a student's own marks."""
    latest = latest_mark_per_subject(marks)
    radar = [
        {'subject': s['name'], 'score': (latest.get(s['id']) or {}).get('score') or 0}
        for s in subjects
    ]

    progress_by_date = {}
    for mark in sorted(marks, key=lambda m: m.get('timestamp') or 0):
        if not mark.get('subject_id'):
            continue
        date = mark_date(mark)
        entry = progress_by_date.setdefault(date, {'date': date})
        entry[subject_name(subjects, mark['subject_id'])] = mark.get('score')
    progress = [progress_by_date[d] for d in sorted(progress_by_date)]

    averages = [
        {'subject': s['name'], 'average': average(m.get('score') for m in marks if m.get('subject_id') == s['id'])}
        for s in subjects
    ]
    return {
        'radar': radar,
        'progress': progress,
        'averages': averages,
        'overall_average': average(m.get('score') for m in marks),
        'mark_count': len(marks),
    }


def term_wise_view(marks, subjects):
    """Latest mark per subject within each term, terms without marks omitted."""
    view = []
    for term in TERMS:
        term_marks = [m for m in marks if m.get('term') == term]
        if not term_marks:
            continue
        latest = latest_mark_per_subject(term_marks)
        rows = [
            {'subject': s, 'mark': latest[s['id']], 'level': score_level(latest[s['id']].get('score'))}
            for s in subjects if s['id'] in latest
        ]
        view.append({'term': term, 'rows': rows})
    return view


def subject_wise_view(marks, subjects):
    """All marks per subject, newest first; the first one is flagged latest."""
    view = []
    for subject in subjects:
        subject_marks = newest_first([m for m in marks if m.get('subject_id') == subject['id']])
        if not subject_marks:
            continue
        rows = [
            {'mark': m, 'latest': i == 0, 'date': mark_date(m), 'level': score_level(m.get('score'))}
            for i, m in enumerate(subject_marks)
        ]
        view.append({'subject': subject, 'rows': rows})
    return view


def class_overview(marks, subjects, students):
    """Class statistics for one grade."""
    subject_averages = [
        {'subject': s['name'], 'average': average(m.get('score') for m in marks if m.get('subject_id') == s['id'])}
        for s in subjects
    ]

    distribution = {}
    for mark in marks:
        band = performance_band(mark.get('score'))
        distribution[band] = distribution.get(band, 0) + 1

    needs_attention = []
    for student in students:
        scores = [m.get('score') for m in marks if m.get('student_id') == student['id']]
        if scores and average(scores) < PASS_MIN:
            needs_attention.append({'id': student['id'], 'name': student['name'], 'average': round(average(scores))})

    return {
        'subject_averages': subject_averages,
        'distribution': [{'name': name, 'value': value} for name, value in distribution.items()],
        'class_average': average(m.get('score') for m in marks),
        'high_performers': sum(1 for m in marks if float(m.get('score') or 0) >= EXCELLENT_MIN),
        'student_count': len(students),
        'mark_count': len(marks),
        'needs_attention': needs_attention,
    }


def build_report_sections(students, marks, subjects):
    """Per-student rows for the printable grade report."""
    sections = []
    for student in students:
        student_marks = newest_first([m for m in marks if m.get('student_id') == student['id']])
        rows = []
        for mark in student_marks:
            rows.append({
                'subject': subject_name(subjects, mark.get('subject_id')),
                'score': mark.get('score'),
                'letter': letter_grade(mark.get('score')),
                'level': score_level(mark.get('score')),
                'term': mark.get('term') or '',
                'year': mark.get('year') or '',
                'comment': mark.get('comment') or '-',
            })
        sections.append({
            'student': student,
            'rows': rows,
            'average': average(m.get('score') for m in student_marks),
        })
    return sections
