import pytest

from studyplan.core.enums import CreditPolicy
from studyplan.core.exceptions import MalformedDataError, NotFoundError, ValidationError
from studyplan.core.grading import (
    GradeAggregator,
    GPAComputer,
    apply_assignment_grade,
    compute_course_grade,
    compute_gpa,
    letter_grade,
    percentage_to_gpa,
    standing_for,
)

from conftest import make_category


class TestLetterGrade:
    @pytest.mark.parametrize("percentage, letter", [
        (100, "A+"), (97, "A+"), (96.99, "A"), (93, "A"), (90.0, "A-"), (89.99, "B+"),
        (87, "B+"), (83, "B"), (80, "B-"), (77, "C+"), (73, "C"), (70, "C-"),
        (67, "D+"), (65, "D"), (64.99, "F"), (0, "F"),
    ])
    def test_thresholds(self, percentage, letter):
        assert letter_grade(percentage) == letter


class TestPercentageToGPA:
    @pytest.mark.parametrize("percentage, points", [
        (97, 4.0), (93, 3.7), (90, 3.3), (89.99, 3.0), (87, 3.0), (83, 2.7), (80, 2.3),
        (77, 2.0), (73, 1.7), (70, 1.3), (67, 1.0), (65, 0.7), (64.9, 0.0), (0, 0.0),
    ])
    def test_thresholds(self, percentage, points):
        assert percentage_to_gpa(percentage) == points


def test_standing_labels():
    assert standing_for(3.7) == "Excellent"
    assert standing_for(3.5) == "Excellent"
    assert standing_for(3.0) == "Good"
    assert standing_for(2.99) == "Needs Improvement"


class TestGradeAggregator:
    def test_category_average_ignores_ungraded(self):
        category = make_category("c1", "Homework", 40, [(10, 8), (10, None), (10, 6)])
        assert GradeAggregator().category_average(category) == pytest.approx(0.7)

    def test_category_without_grades_has_no_average(self):
        category = make_category("c1", "Quizzes", 20, [(10, None)])
        assert GradeAggregator().category_average(category) is None

    def test_homework_and_exam_scenario(self, homework_and_exam):
        aggregator = GradeAggregator()
        homework, exam = homework_and_exam
        assert aggregator.category_average(homework) == pytest.approx(0.85)
        assert aggregator.category_average(exam) == pytest.approx(0.85)

        grade = compute_course_grade("c1", homework_and_exam)
        assert grade.percentage == pytest.approx(85.0)
        assert grade.letter == "B"
        assert grade.graded_categories == 2

    def test_ungraded_category_is_excluded_not_zero(self, homework_and_exam):
        ungraded = make_category("c1", "Project", 50, [(100, None), (50, None)])
        grade = compute_course_grade("c1", homework_and_exam + [ungraded])
        assert grade.percentage == pytest.approx(85.0)
        assert grade.total_weight == pytest.approx(100)

    def test_no_graded_work_gives_zero(self):
        categories = [make_category("c1", "Homework", 40, [(10, None)])]
        grade = compute_course_grade("c1", categories)
        assert grade.percentage == 0.0
        assert grade.letter == "F"
        assert not grade.has_data

    def test_weights_are_relative(self):
        categories = [
            make_category("c1", "Homework", 1, [(10, 10)]),
            make_category("c1", "Exam", 3, [(10, 5)]),
        ]
        assert compute_course_grade("c1", categories).percentage == pytest.approx(62.5)

    def test_other_courses_are_ignored(self, homework_and_exam):
        other = make_category("c2", "Exam", 100, [(100, 10)])
        assert compute_course_grade("c1", homework_and_exam + [other]).percentage == pytest.approx(85.0)

    def test_percentage_stays_in_range_for_legacy_overscores(self):
        category = make_category("c1", "Extra", 100, [(10, 10)])
        category.assignments[0].grade = 15
        grade = compute_course_grade("c1", [category])
        assert grade.percentage == pytest.approx(100.0)


class TestThresholdScores:
    @pytest.mark.parametrize("weight", [1, 10, 30, 40, 60, 70, 100])
    def test_exact_a_plus(self, weight):
        grade = compute_course_grade("c1", [make_category("c1", "Exam", weight, [(100, 97)])])
        assert grade.percentage == 97.0
        assert grade.letter == "A+"

    @pytest.mark.parametrize("weight, scores, letter", [
        (70, [(100, 90)], "A-"),
        (10, [(25, 21.75)], "B+"),
        (30, [(100, 87)], "B+"),
        (45, [(20, 17), (10, 8.9)], "B+"),
        (55, [(100, 83)], "B"),
        (35, [(100, 65)], "D"),
    ])
    def test_exact_boundaries(self, weight, scores, letter):
        grade = compute_course_grade("c1", [make_category("c1", "Exam", weight, scores)])
        assert grade.letter == letter

    def test_mixed_weights_on_boundary(self):
        categories = [
            make_category("c1", "Homework", 30, [(100, 97)]),
            make_category("c1", "Exam", 70, [(100, 97)]),
        ]
        assert compute_course_grade("c1", categories).letter == "A+"

    @pytest.mark.parametrize("weight, score, points", [
        (70, 97, 4.0), (40, 90, 3.3), (10, 87, 3.0), (60, 80, 2.3),
    ])
    def test_gpa_on_boundary(self, weight, score, points):
        assert compute_gpa([make_category("c1", "Exam", weight, [(100, score)])]) == points


class TestGPAComputer:
    def test_no_graded_courses(self):
        categories = [make_category("c1", "Homework", 40, [(10, None)])]
        assert compute_gpa(categories) == 0.0
        result = GPAComputer().compute_gpa_result(categories)
        assert result.gpa == 0.0
        assert not result.has_data

    def test_empty_input(self):
        assert compute_gpa([]) == 0.0

    def test_fixed_credits_give_plain_mean(self, homework_and_exam):
        # c1 at 85% -> 2.7, c2 at 95% -> 3.7
        c2 = make_category("c2", "Exam", 100, [(100, 95)])
        result = GPAComputer().compute_gpa_result(homework_and_exam + [c2])
        assert result.gpa == pytest.approx((2.7 + 3.7) / 2)
        assert result.courses_counted == 2
        assert result.total_credits == 6
        assert result.course_points == {"c1": 2.7, "c2": 3.7}

    def test_course_credit_policy(self, homework_and_exam):
        c2 = make_category("c2", "Exam", 100, [(100, 95)])
        computer = GPAComputer(credit_policy=CreditPolicy.COURSE, course_credits={"c1": 1, "c2": 3})
        assert computer.compute_gpa(homework_and_exam + [c2]) == pytest.approx((2.7 * 1 + 3.7 * 3) / 4)

    def test_course_policy_skips_courses_without_credits(self, homework_and_exam):
        c2 = make_category("c2", "Exam", 100, [(100, 95)])
        computer = GPAComputer(credit_policy=CreditPolicy.COURSE, course_credits={"c2": 4})
        assert computer.compute_gpa(homework_and_exam + [c2]) == pytest.approx(3.7)

    def test_course_filter(self, homework_and_exam):
        c2 = make_category("c2", "Exam", 100, [(100, 95)])
        assert compute_gpa(homework_and_exam + [c2], course_id_filter=["c2"]) == pytest.approx(3.7)
        assert compute_gpa(homework_and_exam + [c2], course_id_filter=["missing"]) == 0.0

    def test_courses_without_graded_work_are_excluded(self, homework_and_exam):
        ungraded = make_category("c2", "Exam", 100, [(100, None)])
        assert compute_gpa(homework_and_exam + [ungraded]) == pytest.approx(2.7)

    def test_gpa_bounds(self):
        perfect = [make_category(f"c{i}", "Exam", 100, [(10, 10)]) for i in range(3)]
        failing = [make_category(f"f{i}", "Exam", 100, [(10, 0)]) for i in range(3)]
        assert compute_gpa(perfect) == 4.0
        assert compute_gpa(failing) == 0.0
        assert 0.0 <= compute_gpa(perfect + failing) <= 4.0

    def test_malformed_data_degrades_to_zero(self, homework_and_exam):
        homework_and_exam[0].assignments[0].grade = "eight"
        assert compute_gpa(homework_and_exam) == 0.0
        with pytest.raises(MalformedDataError):
            GPAComputer().compute_gpa_result(homework_and_exam)


class TestApplyAssignmentGrade:
    def test_grades_in_place(self):
        category = make_category("c1", "Homework", 40, [(10, None), (10, 7)], category_id="hw")
        updated = apply_assignment_grade([category], "hw", "1", 9)
        assert updated is category
        assert category.assignments[0].grade == 9
        assert category.assignments[0].completed is True

    def test_idempotent(self):
        category = make_category("c1", "Homework", 40, [(10, None), (10, 7)], category_id="hw")
        first = [a.to_dict() for a in apply_assignment_grade([category], "hw", "1", 9).assignments]
        second = [a.to_dict() for a in apply_assignment_grade([category], "hw", "1", 9).assignments]
        assert first == second

    def test_unknown_assignment_leaves_category_untouched(self):
        category = make_category("c1", "Homework", 40, [(10, None), (10, 7)], category_id="hw")
        before = [a.to_dict() for a in category.assignments]
        with pytest.raises(NotFoundError):
            apply_assignment_grade([category], "hw", "99", 5)
        assert [a.to_dict() for a in category.assignments] == before

    def test_unknown_category(self, homework_and_exam):
        with pytest.raises(NotFoundError):
            apply_assignment_grade(homework_and_exam, "quizzes", "1", 5)

    @pytest.mark.parametrize("grade", [-1, 10.5, float("nan"), "9", True])
    def test_rejects_invalid_grades(self, grade):
        category = make_category("c1", "Homework", 40, [(10, None)], category_id="hw")
        with pytest.raises(ValidationError):
            apply_assignment_grade([category], "hw", "1", grade)
        assert category.assignments[0].grade is None
        assert category.assignments[0].completed is False

    def test_full_marks_are_accepted(self):
        category = make_category("c1", "Homework", 40, [(10, None)], category_id="hw")
        apply_assignment_grade([category], "hw", "1", 10)
        assert category.assignments[0].grade == 10.0
