from django.contrib import admin
from .models import (
    Department, Position, Employee, EmployeePosition,
    PayrollConcept, EmployeeBenefit, PayrollPeriod, Payroll, PayrollDetail, AuditLog,
)

# simple models
admin.site.register(Department)
admin.site.register(EmployeePosition)

@admin.register(Position)
class PositionAdmin(admin.ModelAdmin):
    list_display = ("code", "title", "department", "level", "min_salary", "max_salary", "status")
    search_fields = ("code", "title")
    list_filter = ("department", "level", "status")

@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ("employee_number", "first_name", "last_name", "department", "salary_type", "base_salary", "employment_status")
    search_fields = ("employee_number", "first_name", "last_name", "identification_number", "email")
    list_filter = ("department", "employment_status", "employment_type", "salary_type")

@admin.register(PayrollConcept)
class PayrollConceptAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "type", "calculation_type", "default_value", "is_mandatory", "is_system", "priority_order", "status")
    search_fields = ("code", "name")
    list_filter = ("type", "calculation_type", "status", "is_mandatory")
    readonly_fields = ("compiled_formula", "is_system")  # compiled on save by the service
    ordering = ("type", "priority_order", "code")

@admin.register(EmployeeBenefit)
class EmployeeBenefitAdmin(admin.ModelAdmin):
    list_display = ("employee", "concept", "amount", "percentage", "frequency", "start_date", "end_date", "status")
    list_filter = ("status", "frequency", "concept")
    search_fields = ("employee__employee_number", "concept__code")

@admin.register(PayrollPeriod)
class PayrollPeriodAdmin(admin.ModelAdmin):
    list_display = ("name", "period_type", "start_date", "end_date", "pay_date", "status", "total_employees", "total_net")
    list_filter = ("status", "period_type", "year")
    readonly_fields = ("year", "month", "period_number", "opened_at", "closed_at",
                       "total_employees", "total_gross", "total_deductions", "total_taxes", "total_net")

class PayrollDetailInline(admin.TabularInline):
    model = PayrollDetail
    extra = 0
    can_delete = False
    readonly_fields = ("concept", "concept_type", "quantity", "rate", "base_amount", "amount", "calculation_details")

@admin.register(Payroll)
class PayrollAdmin(admin.ModelAdmin):
    list_display = ("payroll_number", "employee", "period", "gross_salary", "total_deductions", "total_taxes", "net_salary", "status")
    list_filter = ("status", "period", "department")
    search_fields = ("payroll_number", "employee__employee_number", "employee__last_name")
    inlines = [PayrollDetailInline]
    readonly_fields = ("employer_breakdown", "calculated_at", "approved_by", "approved_at", "rejected_at", "paid_at")

@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("created_at", "actor_id", "action", "object_type", "object_id")
    list_filter = ("action", "object_type")
    search_fields = ("object_id",)
