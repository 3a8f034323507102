from decimal import Decimal
from django.test import SimpleTestCase

from payroll.exceptions import CalculationError
from payroll.services import calculation as calc
from payroll.services.calculation import CalculationInput, ConceptRule, compute_payroll, withholding_tax
from payroll.services.formula import parse
from payroll.services.rates import PayrollRates, build_rates

D = Decimal
RATES = PayrollRates()


def full_month(base, **kw):
    return CalculationInput(base_salary=D(base), worked_days=D("30"), worked_hours=D("240"), **kw)


class WithholdingTests(SimpleTestCase):
    def test_below_first_taxed_bracket_is_zero(self):
        self.assertEqual(withholding_tax(D("94") * RATES.uvt_value, RATES), D("0"))

    def test_just_above_95_uvt_is_taxed(self):
        # (96 - 95) * 19% of one UVT
        self.assertEqual(withholding_tax(D("96") * RATES.uvt_value, RATES), D("8058.28"))

    def test_non_positive_amount(self):
        self.assertEqual(withholding_tax(D("0"), RATES), D("0"))
        self.assertEqual(withholding_tax(D("-10"), RATES), D("0"))

    def test_monotonic_non_decreasing(self):
        previous = D("0")
        for uvt in range(0, 3000, 7):
            tax = withholding_tax(D(uvt) * RATES.uvt_value, RATES)
            self.assertGreaterEqual(tax, previous, f"tax dropped at {uvt} UVT")
            previous = tax

    def test_continuous_at_bracket_edges(self):
        for edge in ("150", "360", "640", "945", "2300"):
            below = withholding_tax(D(edge) * RATES.uvt_value, RATES)
            above = withholding_tax((D(edge) + D("0.0001")) * RATES.uvt_value, RATES)
            self.assertLess(above - below, D("50"), edge)


class ComputePayrollTests(SimpleTestCase):
    def test_three_million_full_month(self):
        res = compute_payroll(full_month("3000000"), [], RATES)
        self.assertEqual(res.gross_salary, D("3000000.00"))
        self.assertEqual(res.amount(calc.HEALTH), D("120000.00"))
        self.assertEqual(res.amount(calc.PENSION), D("120000.00"))
        self.assertIsNone(res.line(calc.SOLIDARITY))
        self.assertIsNone(res.line(calc.TRANSPORT))
        self.assertEqual(res.total_taxes, D("0.00"))
        self.assertEqual(res.net_salary, D("2760000.00"))
        self.assertEqual(res.employer_contributions, D("900660.00"))
        self.assertEqual(res.employer_breakdown["health"], "255000.00")
        self.assertIn("provisions", res.employer_breakdown)

    def test_net_identity(self):
        res = compute_payroll(full_month("7500000", overtime_hours=D("10")), [], RATES)
        self.assertEqual(res.net_salary, res.gross_salary - res.total_deductions - res.total_taxes)

    def test_minimum_wage_gets_transport_outside_social_security(self):
        res = compute_payroll(full_month("1160000"), [], RATES)
        self.assertEqual(res.amount(calc.TRANSPORT), D("140606.00"))
        self.assertEqual(res.social_security_base, D("1160000.00"))
        self.assertEqual(res.gross_salary, D("1300606.00"))
        self.assertEqual(res.net_salary, D("1207806.00"))

    def test_transport_prorated_by_days(self):
        inp = CalculationInput(base_salary=D("1160000"), worked_days=D("15"), worked_hours=D("120"))
        res = compute_payroll(inp, [], RATES)
        self.assertEqual(res.amount(calc.SALARY), D("580000.00"))
        self.assertEqual(res.amount(calc.TRANSPORT), D("70303.00"))

    def test_solidarity_and_withholding_above_threshold(self):
        res = compute_payroll(full_month("5000000"), [], RATES)
        self.assertEqual(res.amount(calc.SOLIDARITY), D("50000.00"))
        self.assertEqual(res.taxable_base, D("4550000.00"))
        self.assertEqual(res.amount(calc.WITHHOLDING), D("98963.40"))
        self.assertEqual(res.total_taxes, D("98963.40"))

    def test_overtime(self):
        res = compute_payroll(full_month("2400000", overtime_hours=D("8")), [], RATES)
        # 2,400,000 / 240 * 1.25 * 8
        self.assertEqual(res.overtime_amount, D("100000.00"))
        self.assertEqual(res.social_security_base, D("2500000.00"))

    def test_hourly_employee(self):
        inp = CalculationInput(base_salary=D("3200000"), worked_days=D("10"), worked_hours=D("80"),
                               salary_type="hourly", hourly_rate=D("20000"))
        res = compute_payroll(inp, [], RATES)
        self.assertEqual(res.prorated_salary, D("1600000.00"))
        self.assertIsNone(res.line(calc.TRANSPORT))

    def test_days_capped_at_standard_period(self):
        inp = CalculationInput(base_salary=D("3000000"), worked_days=D("31"), worked_hours=D("248"))
        res = compute_payroll(inp, [], RATES)
        self.assertEqual(res.amount(calc.SALARY), D("3000000.00"))

    def test_unpaid_leave(self):
        res = compute_payroll(full_month("3000000", unpaid_leave_days=D("2")), [], RATES)
        self.assertEqual(res.amount(calc.UNPAID_LEAVE), D("200000.00"))
        self.assertEqual(res.net_salary, D("2560000.00"))

    def test_formula_earning_feeds_social_security(self):
        bonus = ConceptRule(code="BONO", type="earning", calculation_type="formula",
                            expression=parse("{SALARIO_BASE} * 0.1"))
        res = compute_payroll(full_month("3000000"), [bonus], RATES)
        self.assertEqual(res.amount("BONO"), D("300000.00"))
        self.assertEqual(res.social_security_base, D("3300000.00"))
        self.assertEqual(res.net_salary, D("3036000.00"))

    def test_percentage_deduction_on_gross(self):
        union = ConceptRule(code="SINDICATO", type="deduction", calculation_type="percentage",
                            value=D("1"), calculation_base="gross_salary", is_taxable=False)
        res = compute_payroll(full_month("3000000"), [union], RATES)
        self.assertEqual(res.amount("SINDICATO"), D("30000.00"))
        self.assertEqual(res.total_deductions, D("270000.00"))

    def test_rules_applied_in_priority_order(self):
        first = ConceptRule(code="A_FIRST", type="earning", calculation_type="fixed", value=D("100"), priority_order=1)
        second = ConceptRule(code="B_SECOND", type="earning", calculation_type="formula",
                             expression=parse("{A_FIRST} * 2"), priority_order=2)
        res = compute_payroll(full_month("3000000"), [second, first], RATES)
        self.assertEqual(res.amount("B_SECOND"), D("200.00"))

    def test_formula_with_unknown_variable(self):
        rule = ConceptRule(code="X", type="earning", calculation_type="formula", expression=parse("{NOPE} + 1"))
        with self.assertRaises(CalculationError):
            compute_payroll(full_month("3000000"), [rule], RATES)

    def test_zero_concept_still_visible_to_later_formulas(self):
        commission = ConceptRule(code="COMISION", type="earning", calculation_type="formula",
                                 expression=parse("{OVERTIME_HOURS} * 1000"), priority_order=1)
        bonus = ConceptRule(code="BONO_COMISION", type="earning", calculation_type="formula",
                            expression=parse("{COMISION} * 0.1"), priority_order=2)
        res = compute_payroll(full_month("3000000"), [bonus, commission], RATES)
        self.assertEqual(res.gross_salary, D("3000000.00"))
        self.assertIsNone(res.line("COMISION"))
        self.assertIsNone(res.line("BONO_COMISION"))

        res = compute_payroll(full_month("3000000", overtime_hours=D("2")), [bonus, commission], RATES)
        self.assertEqual(res.amount("COMISION"), D("2000.00"))
        self.assertEqual(res.amount("BONO_COMISION"), D("200.00"))

    def test_zero_deduction_referenced_by_tax_concept(self):
        fund = ConceptRule(code="FONDO", type="deduction", calculation_type="fixed", value=D("0"))
        levy = ConceptRule(code="TASA", type="tax", calculation_type="formula", expression=parse("{FONDO} + 10"))
        res = compute_payroll(full_month("3000000"), [fund, levy], RATES)
        self.assertEqual(res.amount("TASA"), D("10.00"))

    def test_unpaid_leave_clamped_to_gross(self):
        inp = CalculationInput(base_salary=D("3000000"), worked_days=D("10"), worked_hours=D("80"),
                               unpaid_leave_days=D("25"))
        res = compute_payroll(inp, [], RATES)
        self.assertEqual(res.gross_salary, D("1000000.00"))
        self.assertEqual(res.amount(calc.UNPAID_LEAVE), D("920000.00"))
        self.assertEqual(res.net_salary, D("0.00"))

    def test_net_never_negative(self):
        loan = ConceptRule(code="PRESTAMO", type="deduction", calculation_type="fixed", value=D("5000000"))
        res = compute_payroll(full_month("3000000"), [loan], RATES)
        self.assertEqual(res.net_salary, D("0.00"))
        self.assertEqual(res.amount("PRESTAMO"), D("2760000.00"))
        self.assertEqual(res.gross_salary, res.total_deductions + res.total_taxes)

    def test_zero_salary_rejected(self):
        with self.assertRaises(CalculationError):
            compute_payroll(full_month("0"), [], RATES)

    def test_negative_hours_rejected(self):
        inp = CalculationInput(base_salary=D("3000000"), worked_days=D("30"), overtime_hours=D("-1"))
        with self.assertRaises(CalculationError):
            compute_payroll(inp, [], RATES)

    def test_rates_override_changes_result(self):
        rates = build_rates({"health_employee": "0.05"})
        res = compute_payroll(full_month("3000000"), [], rates)
        self.assertEqual(res.amount(calc.HEALTH), D("150000.00"))
