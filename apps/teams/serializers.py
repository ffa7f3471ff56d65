from rest_framework import serializers


class ProgressStepSerializer(serializers.Serializer):
    key = serializers.CharField()
    label = serializers.CharField()
    completed = serializers.BooleanField()


class StageStateSerializer(serializers.Serializer):
    key = serializers.CharField()
    label = serializers.CharField()
    state = serializers.ChoiceField(choices=['complete', 'active', 'locked'])


class TeamProgressSerializer(serializers.Serializer):
    """Serializer for derived team progress."""

    phase1_steps = ProgressStepSerializer(many=True)
    phase1_completion = serializers.IntegerField()
    phase2_stages = StageStateSerializer(many=True)
    phase2_completion = serializers.IntegerField()
    current_stage_index = serializers.IntegerField(allow_null=True)
    address_set = serializers.BooleanField()
